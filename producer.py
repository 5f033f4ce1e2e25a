import copy
import random
import time

from db import insert_lead
from fixtures import DEMO_DEALS

# Fixture figures are nudged by up to ±JITTER so repeated seeds differ
JITTER = 0.10

_JITTERED_LEAD_FIELDS = ("noi", "existing_debt_service", "appraised_value", "total_project_cost")
_JITTERED_RETURN_FIELDS = ("gross_revenue", "net_income", "depreciation", "interest_expense",
                           "officer_compensation", "rent_expense", "taxes_paid", "amortization")


def _nudge(value):
    if not value:
        return value
    return round(value * random.uniform(1 - JITTER, 1 + JITTER), -2)


def generate_deal() -> dict:
    deal = copy.deepcopy(random.choice(DEMO_DEALS))

    financials = deal["lead"]["financials"]
    for key in _JITTERED_LEAD_FIELDS:
        if key in financials:
            financials[key] = _nudge(financials[key])

    tax_return = deal["tax_return"]
    for key in _JITTERED_RETURN_FIELDS:
        if key in tax_return:
            tax_return[key] = _nudge(tax_return[key])

    return deal


def run_producer(interval: float = 6.0):
    print(f"🏭 Producer started — new demo lead every {interval:.0f}s\n")
    while True:
        deal    = generate_deal()
        lead    = deal["lead"]
        lead_id = insert_lead(lead, deal["tax_return"])
        f       = lead["financials"]
        print(f"[Producer] ➕ #{lead_id[:8]}... | {lead['company']:20s} | "
              f"Loan ${lead['loan_amount']/1e6:.2f}M | "
              f"NOI ${f.get('noi', 0)/1e3:.0f}k | "
              f"Value ${max(f.get('appraised_value', 0), f.get('total_project_cost', 0))/1e6:.2f}M")
        time.sleep(interval)


if __name__ == "__main__":
    from db import init_db
    init_db()
    run_producer()
