import asyncio
import time

from config import POLL_INTERVAL
from db import fetch_and_lock_lead, save_results, mark_failed
from schemas import Lead, TaxReturnData
from workflow import lead_score, run_underwriting


def process_lead(workflow, row: dict):
    lead       = Lead(**row["lead"])
    tax_return = TaxReturnData(**row["tax_return"])
    f          = lead.financials

    print(f"\n{'═'*65}")
    print(f"  📋 LEAD LOCKED  →  {lead.id[:8]}... {lead.display_name}")
    print(f"  Loan: ${lead.loan_amount:,.0f} ({lead.loan_program or 'Unknown'}) | "
          f"NOI: ${f.noi:,.0f} | Existing DS: ${f.existing_debt_service:,.0f}")
    print(f"  Tax return: {tax_return.form_type} {tax_return.year} | "
          f"Revenue: ${tax_return.gross_revenue:,.0f} | Net income: ${tax_return.net_income:,.0f}")
    print(f"{'─'*65}")

    t_start = time.time()

    # Spreading → (Deal Physics ∥ Scorecard) → Council
    report = asyncio.run(run_underwriting(workflow, lead, tax_return))

    elapsed = time.time() - t_start

    spread, physics, card, council = report.spread, report.physics, report.scorecard, report.council
    print(f"\n  {'─'*63}")
    print(f"  [Underwriting Summary]")
    print(f"  Spread    → EBITDA ${spread.ebitda:,.0f} | SDE ${spread.sde:,.0f} | DSCR {spread.dscr}x")
    print(f"  Physics   → {physics.status} | DSCR {physics.dscr}x | LTV {physics.ltv * 100:.0f}%")
    for flag in physics.flags:
        print(f"              ⚑ {flag}")
    print(f"  Scorecard → cash flow {card.cash_flow.score}/5 | collateral {card.collateral.score}/5 | "
          f"character {card.character.score}/5")

    chairman = council.opinions[-1]
    icon     = {"Approve": "✅", "Decline": "❌", "Review": "🔶"}.get(chairman.verdict, "❓")
    degraded = [o.persona for o in council.opinions if o.degraded]

    print(f"\n  {icon}  COUNCIL: {chairman.verdict}  (risk={council.risk_score}/10)")
    if degraded:
        print(f"  ⚠️  Degraded opinions: {', '.join(degraded)}")
    print(f"  Ruling: {council.final_recommendation[:180]}...")
    print(f"  Total time: {elapsed:.1f}s")
    print(f"{'═'*65}\n")

    save_results(lead.id, report, lead_score(report))


def run_orchestrator(workflow):
    print("🎯 Orchestrator started — monitoring underwriting queue...\n")
    while True:
        row = fetch_and_lock_lead()

        if not row:
            print(".", end="", flush=True)
            time.sleep(POLL_INTERVAL)
            continue

        try:
            process_lead(workflow, row)
        except Exception as e:
            import traceback
            print(f"\n  ❌ Error processing lead {row['id'][:8]}: {e}")
            traceback.print_exc()
            mark_failed(row["id"])
