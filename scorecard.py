from schemas import FinancialInput, Ratios, RiskScorecardAI, ScoreReasoning


# (floor, score, template): first band whose floor the DSCR reaches wins
CASH_FLOW_BANDS = [
    (1.50, 5, "Strong DSCR of {dscr}x, significantly exceeding the 1.15x SBA requirement."),
    (1.25, 4, "Healthy DSCR of {dscr}x. Meets SBA requirements with a comfortable buffer."),
    (1.15, 3, "DSCR of {dscr}x meets the minimum 1.15x SBA requirement."),
    (1.00, 2, "DSCR of {dscr}x is marginal and below the 1.15x requirement. Mitigating factors needed."),
]
CASH_FLOW_FLOOR = (1, "Negative or weak DSCR ({dscr}x). Business does not support the proposed debt.")

# (ceiling, score, template): first band whose ceiling the LTV does not exceed wins
COLLATERAL_BANDS = [
    (50, 5, "Excellent LTV of {ltv}%. Collateral coverage is very strong."),
    (70, 4, "Strong LTV of {ltv}%. Typical for conservative conventional lending."),
    (85, 3, "Standard SBA LTV of {ltv}%. Fully secured within program guidelines."),
    (90, 2, "High LTV of {ltv}%. 504 Program allows up to 90%, but risk is elevated."),
]
COLLATERAL_FLOOR = (1, "Excessive LTV of {ltv}%. May require additional external collateral.")

CHARACTER_STUB = ScoreReasoning(
    score=3,
    confidence="low",
    reasoning="Insufficient data to rate Character. Defaulting to neutral.",
)


def _cash_flow_score(dscr: float) -> ScoreReasoning:
    score, template = CASH_FLOW_FLOOR
    for floor, band_score, band_template in CASH_FLOW_BANDS:
        if dscr >= floor:
            score, template = band_score, band_template
            break
    return ScoreReasoning(score=score, confidence="high", reasoning=template.format(dscr=dscr))


def _collateral_score(ltv: float) -> ScoreReasoning:
    score, template = COLLATERAL_FLOOR
    for ceiling, band_score, band_template in COLLATERAL_BANDS:
        if ltv <= ceiling:
            score, template = band_score, band_template
            break
    return ScoreReasoning(score=score, confidence="high", reasoning=template.format(ltv=ltv))


def calculate_ratios(data: FinancialInput) -> RiskScorecardAI:
    """
    Deterministic credit scorecard.

    EBITDA here is the plain accounting sum (every term, whatever its sign),
    unlike the spreading recast. LTV is reported as a percentage.
    Character is not rated yet and always comes back neutral/low-confidence.
    """
    ebitda = (data.net_income + data.interest_expense + data.taxes
              + data.depreciation + data.amortization)

    dscr = round(ebitda / data.annual_debt_service, 2) if data.annual_debt_service > 0 else 0
    ltv  = round(data.loan_amount / data.collateral_value * 100, 2) if data.collateral_value > 0 else 0

    return RiskScorecardAI(
        character=CHARACTER_STUB.model_copy(),
        cash_flow=_cash_flow_score(dscr),
        collateral=_collateral_score(ltv),
        ratios=Ratios(dscr=dscr, ltv=ltv),
    )
