from typing import TypedDict, Optional

from schemas import (
    CouncilReport,
    DealPhysicsAnalysis,
    Lead,
    RiskScorecardAI,
    SpreadingResult,
    TaxReturnData,
)


class UnderwritingState(TypedDict):
    # ── Input ──────────────────────────────────────────────────────
    lead:       Lead
    tax_return: TaxReturnData
    proposed_debt_service: Optional[float]   # estimated from loan terms when None

    # ── Spreading output ───────────────────────────────────────────
    spread: Optional[SpreadingResult]

    # ── Parallel branches (independent of each other) ──────────────
    physics:   Optional[DealPhysicsAnalysis]
    scorecard: Optional[RiskScorecardAI]

    # ── Council output ─────────────────────────────────────────────
    council: Optional[CouncilReport]
