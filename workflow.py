from langgraph.graph import StateGraph, END

from council import Council
from deal_physics import analyze, collateral_value, estimate_annual_payment
from graph_state import UnderwritingState
from schemas import FinancialInput, Lead, TaxReturnData, UnderwritingReport
from scorecard import calculate_ratios
from spreading import spread


def financial_input_for(lead: Lead, tax_return: TaxReturnData, proposed_debt_service: float) -> FinancialInput:
    return FinancialInput(
        net_income=tax_return.net_income,
        depreciation=tax_return.depreciation,
        interest_expense=tax_return.interest_expense,
        taxes=tax_return.taxes_paid or 0,
        amortization=tax_return.amortization or 0,
        annual_debt_service=lead.financials.existing_debt_service + proposed_debt_service,
        loan_amount=lead.loan_amount,
        collateral_value=collateral_value(lead),
    )


def lead_score(report: UnderwritingReport) -> int:
    """Advisory 1-10 lead score written back to the CRM (10 = best)."""
    return 11 - report.council.risk_score


# ─── Nodes ─────────────────────────────────────────────────────
def spreading_node(state: UnderwritingState) -> dict:
    proposed = state.get("proposed_debt_service")
    if proposed is None:
        proposed = estimate_annual_payment(state["lead"].loan_amount)
    return {
        "spread":                spread(state["tax_return"], proposed),
        "proposed_debt_service": proposed,
    }


def deal_physics_node(state: UnderwritingState) -> dict:
    return {"physics": analyze(state["lead"])}


def scoring_node(state: UnderwritingState) -> dict:
    data = financial_input_for(state["lead"], state["tax_return"], state["proposed_debt_service"])
    return {"scorecard": calculate_ratios(data)}


def build_workflow(council: Council):
    """
    spreading ─┬─> deal_physics ─┬─> council_review ─> END
               └─> scoring ──────┘
    """
    async def council_node(state: UnderwritingState) -> dict:
        return {"council": await council.convene(state["lead"], state["spread"])}

    graph = StateGraph(UnderwritingState)

    graph.add_node("spreading",      spreading_node)
    graph.add_node("deal_physics",   deal_physics_node)
    graph.add_node("scoring",        scoring_node)
    graph.add_node("council_review", council_node)

    graph.set_entry_point("spreading")

    graph.add_edge("spreading", "deal_physics")
    graph.add_edge("spreading", "scoring")
    graph.add_edge(["deal_physics", "scoring"], "council_review")
    graph.add_edge("council_review", END)

    return graph.compile()


async def run_underwriting(workflow, lead: Lead, tax_return: TaxReturnData,
                           proposed_debt_service: float | None = None) -> UnderwritingReport:
    initial_state: UnderwritingState = {
        "lead":                  lead,
        "tax_return":            tax_return,
        "proposed_debt_service": proposed_debt_service,
        "spread":                None,
        "physics":               None,
        "scorecard":             None,
        "council":               None,
    }
    final_state = await workflow.ainvoke(initial_state)

    return UnderwritingReport(
        lead_id=lead.id,
        spread=final_state["spread"],
        physics=final_state["physics"],
        scorecard=final_state["scorecard"],
        council=final_state["council"],
    )
