import math

import pytest

from deal_physics import (
    MAX_LTV_504,
    analyze,
    calculate_dscr,
    calculate_ltv,
    estimate_annual_payment,
)
from schemas import Lead


def _lead(noi=0, loan_amount=0, existing=0, appraised=0, project_cost=0) -> Lead:
    return Lead(
        id="L1",
        loan_amount=loan_amount,
        financials={
            "noi": noi,
            "existing_debt_service": existing,
            "appraised_value": appraised,
            "total_project_cost": project_cost,
        },
    )


def test_annual_payment_on_504_blend():
    # 7.5% over 25 years on $1M ≈ $7,390/month
    assert estimate_annual_payment(1_000_000) == pytest.approx(88_679, rel=1e-3)


@pytest.mark.parametrize("amount, rate, years, expected", [
    (0, 7.5, 25, 0),
    (-5_000, 7.5, 25, 0),
    (250_000, 7.5, 0, 0),
    (250_000, 0, 25, 0),
    (250_000, -1, 25, 0),
])
def test_annual_payment_guards(amount, rate, years, expected):
    assert estimate_annual_payment(amount, rate, years) == expected


def test_ratio_guards():
    assert calculate_dscr(100_000, 0) == 0
    assert calculate_ltv(500_000, 0) == 0
    assert calculate_dscr(123_456, 100_000) == 1.23
    assert calculate_ltv(950_000, 1_000_000) == 0.95


def test_empty_lead_never_returns_nan_or_infinity():
    result = analyze(Lead(id="blank"))

    assert result.dscr == 0
    assert result.ltv == 0
    assert math.isfinite(result.dscr) and math.isfinite(result.ltv)


def test_healthy_deal():
    result = analyze(_lead(noi=150_000, loan_amount=1_000_000, appraised=1_500_000))

    assert result.status == "Healthy"
    assert result.dscr == pytest.approx(1.69)
    assert result.ltv == pytest.approx(0.67)
    assert result.flags == []
    assert result.suggestions == []


def test_critical_dscr_suggests_noi_shortfall():
    result = analyze(_lead(noi=60_000, loan_amount=1_000_000, appraised=1_500_000))

    assert result.status == "Critical"
    assert result.dscr < 1.0
    assert any(f.startswith("DSCR Critical") for f in result.flags)

    shortfall = estimate_annual_payment(1_000_000) - 60_000
    assert f"Increase Cash Flow: Need +${math.ceil(round(shortfall, 2)):,}/yr NOI" in result.suggestions
    assert any(s.startswith("Reduce Loan: Lower request by ~$") for s in result.suggestions)


def test_critical_without_debt_has_no_negative_shortfall_suggestions():
    result = analyze(_lead(noi=150_000))

    assert result.status == "Critical"
    assert result.suggestions == []
    assert not any("$-" in s for s in result.flags + result.suggestions)


def test_low_dscr_is_caution():
    result = analyze(_lead(noi=95_000, loan_amount=1_000_000, appraised=1_500_000))

    assert 1.0 <= result.dscr < 1.15
    assert result.status == "Caution"
    assert result.flags == [f"DSCR Low: {result.dscr}x (Target 1.15x)"]
    assert len(result.suggestions) == 2


def test_high_ltv_suggests_down_payment():
    result = analyze(_lead(noi=150_000, loan_amount=1_000_000, appraised=1_050_000))

    assert result.ltv == pytest.approx(0.95)
    assert result.ltv > MAX_LTV_504
    assert result.status == "Caution"
    assert "LTV High: 95% (Max 90%)" in result.flags
    assert result.suggestions == ["Increase Down Payment by $55,000"]


def test_high_ltv_never_downgrades_critical():
    result = analyze(_lead(noi=60_000, loan_amount=1_000_000, appraised=1_000_000))

    assert result.status == "Critical"
    assert len(result.flags) == 2
    assert result.flags[1].startswith("LTV High")


def test_value_is_larger_of_appraisal_and_project_cost():
    result = analyze(_lead(noi=150_000, loan_amount=1_000_000, appraised=900_000, project_cost=1_250_000))

    assert result.ltv == pytest.approx(0.8)


def test_existing_debt_counts_toward_coverage():
    without = analyze(_lead(noi=150_000, loan_amount=1_000_000, appraised=1_500_000))
    with_existing = analyze(_lead(noi=150_000, loan_amount=1_000_000, appraised=1_500_000, existing=40_000))

    assert with_existing.dscr < without.dscr
