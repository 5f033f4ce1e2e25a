from schemas import AddBack, SpreadingResult, TaxReturnData


def spread(data: TaxReturnData, proposed_debt_service: float = 0) -> SpreadingResult:
    """
    Recast one tax-return year into EBITDA / SDE and DSCR.

    Add-backs are applied only for strictly positive figures, so a reported
    loss is never softened by the recast:
      net income + interest + depreciation + amortization   → EBITDA
      EBITDA + officer compensation                          → SDE
    DSCR is measured on EBITDA against the proposed annual debt service.
    """
    add_backs = []
    cash_flow = data.net_income or 0

    for label, amount in (
        ("Interest Expense", data.interest_expense),
        ("Depreciation",     data.depreciation),
        ("Amortization",     data.amortization),
    ):
        if amount and amount > 0:
            cash_flow += amount
            add_backs.append(AddBack(label=label, amount=amount))

    ebitda = cash_flow

    # Owner-operator: full officer comp goes back in for SDE, not for DSCR
    if data.officer_compensation > 0:
        cash_flow += data.officer_compensation
        add_backs.append(AddBack(label="Officer Compensation", amount=data.officer_compensation))

    sde  = cash_flow
    dscr = round(ebitda / proposed_debt_service, 2) if proposed_debt_service > 0 else 0

    return SpreadingResult(
        year=data.year,
        revenue=data.gross_revenue,
        ebitda=ebitda,
        sde=sde,
        dscr=dscr,
        add_backs=add_backs,
        cash_flow_available=ebitda,
        debt_service_coverage=dscr,
    )
