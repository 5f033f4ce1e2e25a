import asyncio
import time

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.output_parsers import PydanticOutputParser

from json_payload import extract_json_payload
from schemas import CouncilOpinion, CouncilReport, Lead, PersonaOutput, SpreadingResult

# ─────────────────────────────────────────────
# CONFIG
# ─────────────────────────────────────────────
DEFAULT_TIMEOUT     = 60.0   # seconds per provider call
DEFAULT_MAX_RETRIES = 2
NEUTRAL_CONFIDENCE  = 50.0

SKEPTIC    = "Skeptic"
DEAL_MAKER = "Deal Maker"
CHAIRMAN   = "Chairman"

opinion_parser = PydanticOutputParser(pydantic_object=PersonaOutput)


# ─────────────────────────────────────────────
# PERSONAS
# ─────────────────────────────────────────────
SKEPTIC_PROMPT = """You are "The Skeptic", the Chief Credit Officer at a conservative bank.
Your job is to PROTECT CAPITAL. Find every flaw.
Focus on: low DSCR, unproven add-backs, high leverage, industry headwinds, lack of collateral.
If the DSCR is below 1.20x, be extremely critical.
Your verdict is normally Decline or Review.
Output JSON only."""

DEAL_MAKER_PROMPT = """You are "The Deal Maker", a senior Business Development Officer.
Your job is to find a way to make the deal FUND.
Focus on: growth potential, borrower strength, strong SDE, collateral, the SBA guarantee.
If the DSCR is above 1.10x, argue that it is workable.
Your verdict is normally Approve or Review.
Output JSON only."""

CHAIRMAN_PROMPT = """You are "The Chairman", the final credit authority of the Credit Committee.
Review the arguments from the Skeptic (Risk) and the Deal Maker (Sales).
Make a final ruling. Be balanced but decisive.
Output JSON only."""


def _program(lead: Lead) -> str:
    if lead.loan_program in ("504", "7a"):
        return f"SBA {lead.loan_program}"
    if lead.loan_program == "Micro":
        return "SBA Microloan"
    return "SBA 504"


def deal_context(lead: Lead, spread: SpreadingResult) -> str:
    add_backs = ", ".join(f"{a.label} (${a.amount:,.0f})" for a in spread.add_backs) or "None"
    return f"""
  Lead:          {lead.display_name}
  Loan Request:  ${lead.loan_amount:,.0f}
  Program:       {_program(lead)}

  Financials (Recast, {spread.year}):
  Revenue:       ${spread.revenue:,.0f}
  EBITDA:        ${spread.ebitda:,.0f}
  SDE:           ${spread.sde:,.0f}
  DSCR:          {spread.dscr}x
  Add-backs:     {add_backs}"""


def _analyst_prompt(context: str) -> str:
    return f"""Analyze this deal:
{context}

Provide:
- verdict: Approve, Decline or Review
- confidence: 0-100
- analysis: one short paragraph citing specific numbers
- keyPoints: 2-4 bullets, each citing a specific number

{opinion_parser.get_format_instructions()}
"""


def _chairman_prompt(context: str, skeptic: CouncilOpinion, deal_maker: CouncilOpinion) -> str:
    return f"""━━━ SKEPTIC ({skeptic.verdict}, confidence={skeptic.confidence:.0f}) ━━━
{skeptic.analysis}
Key Risks: {', '.join(skeptic.key_points)}

━━━ DEAL MAKER ({deal_maker.verdict}, confidence={deal_maker.confidence:.0f}) ━━━
{deal_maker.analysis}
Key Strengths: {', '.join(deal_maker.key_points)}

━━━ DEAL CONTEXT ━━━
{context}

Your job: decide.
- verdict: Approve, Decline or Review
- confidence: 0-100
- analysis: final detailed ruling (~3 sentences)
- keyPoints: the decision factors

{opinion_parser.get_format_instructions()}
"""


def fallback_opinion(persona: str) -> CouncilOpinion:
    analysis = "Chairman failed to convene." if persona == CHAIRMAN else f"{persona} failed to analyze."
    return CouncilOpinion(
        persona=persona,
        verdict="Review",
        confidence=NEUTRAL_CONFIDENCE,
        analysis=analysis,
        key_points=[],
        degraded=True,
    )


def risk_score(chairman: CouncilOpinion) -> int:
    """1 (safe) .. 10 (high risk), read off the Chairman's verdict and confidence."""
    certainty = chairman.confidence / 100
    if chairman.verdict == "Approve":
        raw = 10 - 9 * certainty
    elif chairman.verdict == "Decline":
        raw = 1 + 9 * certainty
    else:
        raw = 5
    return int(min(10, max(1, round(raw))))


# ─────────────────────────────────────────────
# COUNCIL
# ─────────────────────────────────────────────
class Council:
    """
    Three-persona credit committee.

    Phase 1: Skeptic and Deal Maker are asked concurrently and never see each
    other's answer. Phase 2: the Chairman reads both and rules. Any persona
    whose call fails, times out or returns unusable JSON is replaced by a
    neutral fallback opinion, so a full three-opinion report always comes back.
    """

    def __init__(self, llm, timeout: float = DEFAULT_TIMEOUT,
                 max_retries: int = DEFAULT_MAX_RETRIES, persona_llms: dict | None = None):
        self.llm          = llm
        self.timeout      = timeout
        self.max_retries  = max(1, max_retries)
        self.persona_llms = persona_llms or {}

    def _model_for(self, persona: str):
        return self.persona_llms.get(persona, self.llm)

    async def _invoke_with_retry(self, persona: str, system_prompt: str, user_prompt: str) -> PersonaOutput:
        model      = self._model_for(persona)
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
            try:
                response = await asyncio.wait_for(model.ainvoke(messages), timeout=self.timeout)
                parsed   = PersonaOutput.model_validate(extract_json_payload(response.content))
                if attempt > 1:
                    print(f"    ♻️  [{persona}] Retry {attempt} succeeded.")
                return parsed

            except asyncio.TimeoutError:
                last_error = f"timed out after {self.timeout:g}s"
            except ValueError as e:
                # malformed JSON or schema violation (pydantic's ValidationError is a ValueError)
                last_error = str(e)
                user_prompt += (f"\n\nPREVIOUS ATTEMPT FAILED: {last_error[:200]}\n"
                                "Return STRICT JSON only. No prose, no markdown.")
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"

            if attempt < self.max_retries:
                print(f"    ⚠️  [{persona}] Attempt {attempt} failed ({last_error[:80]}) — retrying...")

        raise RuntimeError(f"[{persona}] Failed after {self.max_retries} attempts: {last_error}")

    async def _opinion(self, persona: str, system_prompt: str, user_prompt: str) -> CouncilOpinion:
        t = time.time()
        try:
            parsed = await self._invoke_with_retry(persona, system_prompt, user_prompt)
        except Exception as e:
            print(f"  ❌ [{persona}] {e} — using fallback opinion")
            return fallback_opinion(persona)

        opinion = CouncilOpinion(persona=persona, **parsed.model_dump())
        print(f"  ✓ [{persona}] {opinion.verdict} | conf={opinion.confidence:.0f} | {time.time() - t:.1f}s")
        return opinion

    async def convene(self, lead: Lead, spread: SpreadingResult) -> CouncilReport:
        context = deal_context(lead, spread)
        print(f"\n  ⚖️  [Council] Convening for {lead.display_name} | DSCR {spread.dscr}x")

        # Phase 1: independent, concurrent
        skeptic, deal_maker = await asyncio.gather(
            self._opinion(SKEPTIC,    SKEPTIC_PROMPT,    _analyst_prompt(context)),
            self._opinion(DEAL_MAKER, DEAL_MAKER_PROMPT, _analyst_prompt(context)),
        )

        # Phase 2: only once both Phase 1 opinions (real or fallback) exist
        chairman = await self._opinion(
            CHAIRMAN, CHAIRMAN_PROMPT, _chairman_prompt(context, skeptic, deal_maker),
        )

        return CouncilReport(
            opinions=[skeptic, deal_maker, chairman],
            final_recommendation=chairman.analysis,
            risk_score=risk_score(chairman),
        )
