import asyncio

import pytest
from langchain_core.messages import AIMessage

from council import CHAIRMAN_PROMPT, DEAL_MAKER_PROMPT, SKEPTIC_PROMPT
from schemas import Lead, TaxReturnData

PERSONA_BY_PROMPT = {
    SKEPTIC_PROMPT:    "Skeptic",
    DEAL_MAKER_PROMPT: "Deal Maker",
    CHAIRMAN_PROMPT:   "Chairman",
}


def opinion_json(verdict: str = "Review", confidence: int = 60, analysis: str = "Looks workable.",
                 key_points=("DSCR 1.22x",)) -> str:
    points = ", ".join(f'"{p}"' for p in key_points)
    return (f'{{"verdict": "{verdict}", "confidence": {confidence}, '
            f'"analysis": "{analysis}", "keyPoints": [{points}]}}')


class StubChat:
    """Chat model double: per-persona scripted replies, failures and delays, with a call log."""

    def __init__(self, replies=None, fail=(), delays=None):
        self.replies  = {k: list(v) if isinstance(v, list) else [v] for k, v in (replies or {}).items()}
        self.fail     = set(fail)
        self.delays   = delays or {}
        self.log      = []
        self.messages = {}

    async def ainvoke(self, messages):
        persona = PERSONA_BY_PROMPT[messages[0].content]
        self.messages.setdefault(persona, []).append(messages)
        self.log.append(("start", persona))
        await asyncio.sleep(self.delays.get(persona, 0.01))
        self.log.append(("end", persona))

        if persona in self.fail:
            raise RuntimeError(f"{persona} provider down")
        queue = self.replies.get(persona) or [opinion_json()]
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        return AIMessage(content=reply)


@pytest.fixture()
def lead() -> Lead:
    return Lead(
        id="lead-1",
        first_name="John",
        last_name="Doe",
        company="Acme Logistics LLC",
        loan_program="504",
        loan_amount=1_200_000,
        financials={"noi": 150_000, "appraised_value": 1_500_000},
    )


@pytest.fixture()
def tax_return() -> TaxReturnData:
    return TaxReturnData(
        form_type="1120S",
        year=2023,
        gross_revenue=1_000_000,
        net_income=150_000,
        depreciation=50_000,
        interest_expense=20_000,
        officer_compensation=100_000,
        rent_expense=60_000,
        notes="Simulation",
    )
