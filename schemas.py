from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional


Persona      = Literal["Skeptic", "Deal Maker", "Chairman"]
Verdict      = Literal["Approve", "Decline", "Review"]
RiskStatus   = Literal["Healthy", "Caution", "Critical"]
Confidence   = Literal["high", "medium", "low"]
LoanProgram  = Literal["504", "7a", "Micro", "Unknown"]
LeadStage    = Literal["New", "Contacted", "Warm", "Qualified", "Proposal",
                       "Negotiation", "In Process", "Not a Fit"]
DealStage    = Literal["Prospect", "Prequal", "Application", "Processing", "Underwriting",
                       "Approved", "Closing", "Funded", "Lost"]


class _Figures(BaseModel):
    """Numeric records where a missing figure means zero."""

    @field_validator("*", mode="before")
    @classmethod
    def _none_is_zero(cls, value, info):
        if value is None and cls.model_fields[info.field_name].annotation is float:
            return 0.0
        return value


# ─────────────────────────────────────────────
# SPREADING
# ─────────────────────────────────────────────
class TaxReturnData(_Figures):
    model_config = ConfigDict(frozen=True)

    form_type:            str = Field(default="1120S", description="IRS form, e.g. 1120S, 1065, Schedule C")
    year:                 int
    gross_revenue:        float = 0.0
    net_income:           float = 0.0
    depreciation:         float = 0.0
    interest_expense:     float = 0.0
    officer_compensation: float = 0.0
    rent_expense:         float = 0.0
    taxes_paid:           Optional[float] = None
    amortization:         Optional[float] = None
    notes:                Optional[str] = None


class AddBack(BaseModel):
    label:  str
    amount: float


class SpreadingResult(BaseModel):
    year:                  int
    revenue:               float
    ebitda:                float
    sde:                   float
    dscr:                  float
    add_backs:             List[AddBack] = Field(default_factory=list)
    cash_flow_available:   float
    debt_service_coverage: float


# ─────────────────────────────────────────────
# LEAD
# ─────────────────────────────────────────────
class LeadFinancials(_Figures):
    noi:                   float = 0.0
    existing_debt_service: float = 0.0
    appraised_value:       float = 0.0
    total_project_cost:    float = 0.0


class Lead(_Figures):
    id:            str
    first_name:    str = ""
    last_name:     str = ""
    email:         str = ""
    company:       Optional[str] = None
    business_name: Optional[str] = None
    industry:      Optional[str] = None
    stage:         LeadStage = "New"
    deal_stage:    Optional[DealStage] = None
    loan_program:  Optional[LoanProgram] = None
    loan_amount:   float = 0.0
    financials:    LeadFinancials = Field(default_factory=LeadFinancials)
    notes:         List[str] = Field(default_factory=list)
    stipulations:  List[str] = Field(default_factory=list)
    lead_score:    Optional[int] = None   # advisory, written back by the runner

    @field_validator("financials", mode="before")
    @classmethod
    def _missing_financials(cls, value):
        return {} if value is None else value

    @property
    def display_name(self) -> str:
        if self.company:
            return self.company
        if self.business_name:
            return self.business_name
        return f"{self.first_name} {self.last_name}".strip() or self.id


# ─────────────────────────────────────────────
# DEAL PHYSICS
# ─────────────────────────────────────────────
class DealPhysicsAnalysis(BaseModel):
    dscr:        float
    ltv:         float   # fraction, 0.95 == 95%
    status:      RiskStatus
    flags:       List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


# ─────────────────────────────────────────────
# SCORECARD
# ─────────────────────────────────────────────
class FinancialInput(_Figures):
    net_income:          float = 0.0
    depreciation:        float = 0.0
    interest_expense:    float = 0.0
    taxes:               float = 0.0
    amortization:        float = 0.0
    annual_debt_service: float = 0.0   # proposed + existing
    loan_amount:         float = 0.0
    collateral_value:    float = 0.0


class ScoreReasoning(BaseModel):
    score:      int = Field(ge=1, le=5)
    confidence: Confidence
    reasoning:  str


class Ratios(BaseModel):
    dscr:        float
    ltv:         float   # percent, 95.0 == 95%
    global_dscr: Optional[float] = None


class RiskScorecardAI(BaseModel):
    character:  ScoreReasoning
    cash_flow:  ScoreReasoning
    collateral: ScoreReasoning
    ratios:     Ratios


# ─────────────────────────────────────────────
# COUNCIL
# ─────────────────────────────────────────────
class PersonaOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verdict:    Verdict = Field(description="Exactly one of: Approve, Decline, Review")
    confidence: float = Field(ge=0, le=100, description="Confidence in the verdict, 0 to 100")
    analysis:   str = Field(description="Short paragraph citing specific numbers from the deal")
    key_points: List[str] = Field(default_factory=list, alias="keyPoints",
                                  description="2-4 bullet points, each citing a specific number")

    @field_validator("verdict", mode="before")
    @classmethod
    def _normalise_verdict(cls, value):
        return value.strip().title() if isinstance(value, str) else value

    @field_validator("confidence", mode="before")
    @classmethod
    def _percent_scale(cls, value):
        # models sometimes answer on a 0-1 scale; a float up to 1.0 is read that way,
        # an integer 1 stays 1 on the 0-100 scale
        if isinstance(value, float) and 0 < value <= 1:
            return value * 100
        return value


class CouncilOpinion(PersonaOutput):
    persona:  Persona
    degraded: bool = False


class CouncilReport(BaseModel):
    opinions:             List[CouncilOpinion]
    final_recommendation: str
    risk_score:           int = Field(ge=1, le=10)   # 10 = highest risk

    def opinion(self, persona: str) -> Optional[CouncilOpinion]:
        return next((o for o in self.opinions if o.persona == persona), None)


class UnderwritingReport(BaseModel):
    lead_id:   str
    spread:    SpreadingResult
    physics:   DealPhysicsAnalysis
    scorecard: RiskScorecardAI
    council:   CouncilReport
