"""
Demo-mode fixture table.

DEMO_DEALS seeds the lead queue (one lead + its latest tax return each).
DEMO_OPINIONS are the canned persona replies replayed instead of a live model.
"""

DEMO_DEALS = [
    {
        "lead": {
            "first_name": "Maria", "last_name": "Lopez", "email": "maria@healthydeal.example",
            "company": "Healthy Deal Corp", "industry": "Manufacturing",
            "loan_program": "504", "deal_stage": "Underwriting", "loan_amount": 1_000_000,
            "financials": {"noi": 150_000, "existing_debt_service": 0, "appraised_value": 1_500_000},
        },
        "tax_return": {
            "form_type": "1120S", "year": 2023, "gross_revenue": 1_800_000, "net_income": 95_000,
            "depreciation": 40_000, "interest_expense": 15_000, "officer_compensation": 120_000,
            "rent_expense": 72_000,
        },
    },
    {
        "lead": {
            "first_name": "Dev", "last_name": "Patel", "email": "dev@criticaldscr.example",
            "company": "Critical DSCR Inc", "industry": "Restaurants",
            "loan_program": "504", "deal_stage": "Prequal", "loan_amount": 1_000_000,
            "financials": {"noi": 60_000, "existing_debt_service": 0, "appraised_value": 1_500_000},
        },
        "tax_return": {
            "form_type": "1065", "year": 2023, "gross_revenue": 900_000, "net_income": 30_000,
            "depreciation": 22_000, "interest_expense": 8_000, "officer_compensation": 60_000,
            "rent_expense": 48_000,
        },
    },
    {
        "lead": {
            "first_name": "Sam", "last_name": "Okafor", "email": "sam@highltv.example",
            "company": "High LTV LLC", "industry": "Warehousing",
            "loan_program": "504", "deal_stage": "Application", "loan_amount": 1_000_000,
            "financials": {"noi": 150_000, "existing_debt_service": 0, "appraised_value": 1_050_000},
        },
        "tax_return": {
            "form_type": "1120", "year": 2023, "gross_revenue": 1_400_000, "net_income": 110_000,
            "depreciation": 35_000, "interest_expense": 12_000, "officer_compensation": 90_000,
            "rent_expense": 0, "taxes_paid": 18_000,
        },
    },
    {
        "lead": {
            "first_name": "John", "last_name": "Doe", "email": "john@acmelogistics.example",
            "company": "Acme Logistics LLC", "industry": "Trucking",
            "loan_program": "7a", "deal_stage": "Underwriting", "loan_amount": 1_200_000,
            "financials": {"noi": 140_000, "existing_debt_service": 24_000, "total_project_cost": 1_400_000},
        },
        "tax_return": {
            "form_type": "1120S", "year": 2023, "gross_revenue": 1_000_000, "net_income": 90_000,
            "depreciation": 50_000, "interest_expense": 0, "officer_compensation": 0,
            "rent_expense": 36_000, "amortization": 0,
        },
    },
]

DEMO_OPINIONS = {
    "Skeptic": {
        "verdict": "Review",
        "confidence": 70,
        "analysis": "Coverage on recast EBITDA is thin once the new 504 payment is layered in, "
                    "and the officer compensation add-back is unproven without a replacement-manager salary.",
        "keyPoints": ["DSCR sits close to the 1.15x floor", "Add-backs depend on owner staying on payroll"],
    },
    "Deal Maker": {
        "verdict": "Approve",
        "confidence": 75,
        "analysis": "SDE comfortably covers debt service, real estate collateral is strong, "
                    "and the SBA guarantee absorbs most of the downside.",
        "keyPoints": ["SDE well above proposed debt service", "Owner-occupied real estate as collateral"],
    },
    "Chairman": {
        "verdict": "Review",
        "confidence": 60,
        "analysis": "Cash flow is workable but not yet proven. Proceed to full underwriting conditioned "
                    "on interim financials and a personal financial statement from the guarantor.",
        "keyPoints": ["Obtain YTD interim financials", "Verify guarantor liquidity"],
    },
}
