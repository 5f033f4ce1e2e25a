import math

from schemas import DealPhysicsAnalysis, Lead

# ─────────────────────────────────────────────
# SBA 504 CONSTRAINTS
# ─────────────────────────────────────────────
MIN_DSCR     = 1.15
MAX_LTV_504  = 0.90   # 50/40/10 structure: borrower brings at least 10%

# Proposed debt is estimated on a blended 504 rate when no terms are set
DEFAULT_RATE_PERCENT = 7.5
DEFAULT_TERM_YEARS   = 25

# Each $1 of NOI shortfall supports roughly $10 of loan principal
SHORTFALL_LOAN_MULTIPLE = 10


def _money(amount: float) -> str:
    return f"${math.ceil(round(amount, 2)):,}"


def calculate_dscr(noi: float, annual_debt_service: float) -> float:
    if not annual_debt_service:
        return 0
    return round(noi / annual_debt_service, 2)


def calculate_ltv(loan_amount: float, value: float) -> float:
    if not value:
        return 0
    return round(loan_amount / value, 2)


def estimate_annual_payment(amount: float,
                            rate_percent: float = DEFAULT_RATE_PERCENT,
                            years: int = DEFAULT_TERM_YEARS) -> float:
    """Standard amortizing payment (PMT), annualized. No rate, amount or term means no payment."""
    if amount <= 0 or years <= 0 or rate_percent <= 0:
        return 0

    n      = years * 12
    r      = rate_percent / 100 / 12
    growth = (1 + r) ** n
    monthly = amount * (r * growth) / (growth - 1)
    return monthly * 12


def collateral_value(lead: Lead) -> float:
    f = lead.financials
    return max(f.appraised_value, f.total_project_cost, 0)


def analyze(lead: Lead) -> DealPhysicsAnalysis:
    f            = lead.financials
    noi          = f.noi
    loan_amount  = lead.loan_amount
    value        = collateral_value(lead)

    proposed_debt = estimate_annual_payment(loan_amount)
    total_debt    = f.existing_debt_service + proposed_debt

    dscr = calculate_dscr(noi, total_debt)
    ltv  = calculate_ltv(loan_amount, value)

    flags       = []
    suggestions = []
    status      = "Healthy"

    # 1. Debt coverage
    if dscr < 1.0:
        status    = "Critical"
        shortfall = total_debt - noi
        flags.append(f"DSCR Critical: {dscr}x (Covering < 1:1)")
        if shortfall > 0:
            suggestions.append(f"Increase Cash Flow: Need +{_money(shortfall)}/yr NOI")
            suggestions.append(f"Reduce Loan: Lower request by ~{_money(shortfall * SHORTFALL_LOAN_MULTIPLE)} (rough est)")
    elif dscr < MIN_DSCR:
        status = "Caution"
        flags.append(f"DSCR Low: {dscr}x (Target {MIN_DSCR}x)")
        suggestions.append("Inject Equity: Increase down payment to lower debt service.")
        suggestions.append("Refinance: Consolidate high-interest existing debt.")

    # 2. Leverage, independent of coverage; never downgrades Critical
    if ltv > MAX_LTV_504:
        if status != "Critical":
            status = "Caution"
        flags.append(f"LTV High: {ltv * 100:.0f}% (Max {MAX_LTV_504 * 100:.0f}%)")
        equity_needed = loan_amount - value * MAX_LTV_504
        if equity_needed > 0:
            suggestions.append(f"Increase Down Payment by {_money(equity_needed)}")

    return DealPhysicsAnalysis(dscr=dscr, ltv=ltv, status=status, flags=flags, suggestions=suggestions)
