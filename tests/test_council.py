import asyncio

import pytest

from conftest import StubChat, opinion_json
from council import Council, deal_context, fallback_opinion, risk_score
from schemas import CouncilOpinion, TaxReturnData
from spreading import spread


@pytest.fixture()
def recast(tax_return):
    return spread(tax_return, proposed_debt_service=180_000)


def _convene(council, lead, recast):
    return asyncio.run(council.convene(lead, recast))


def test_report_shape_and_order(lead, recast):
    chat = StubChat(replies={
        "Skeptic":    opinion_json("Decline", 80, "Coverage is thin."),
        "Deal Maker": opinion_json("Approve", 70, "SDE is strong."),
        "Chairman":   opinion_json("Approve", 80, "Approve with conditions."),
    })
    report = _convene(Council(chat), lead, recast)

    assert [o.persona for o in report.opinions] == ["Skeptic", "Deal Maker", "Chairman"]
    assert [o.verdict for o in report.opinions] == ["Decline", "Approve", "Approve"]
    assert report.final_recommendation == "Approve with conditions."
    assert report.risk_score == 3
    assert not any(o.degraded for o in report.opinions)
    assert report.opinion("Deal Maker").key_points == ["DSCR 1.22x"]


def test_phase_one_runs_concurrently_and_chairman_waits(lead, recast):
    chat = StubChat(delays={"Skeptic": 0.05, "Deal Maker": 0.02})
    _convene(Council(chat), lead, recast)

    log = chat.log
    first_end = next(i for i, (event, _) in enumerate(log) if event == "end")
    started_before_any_end = {p for event, p in log[:first_end] if event == "start"}
    assert started_before_any_end == {"Skeptic", "Deal Maker"}

    chairman_start = log.index(("start", "Chairman"))
    assert log.index(("end", "Skeptic")) < chairman_start
    assert log.index(("end", "Deal Maker")) < chairman_start


def test_phase_one_personas_do_not_see_each_other(lead, recast):
    chat = StubChat(replies={
        "Skeptic":    opinion_json("Decline", 80, "SKEPTIC-ONLY-TEXT"),
        "Deal Maker": opinion_json("Approve", 70, "DEALMAKER-ONLY-TEXT"),
    })
    _convene(Council(chat), lead, recast)

    skeptic_prompt    = chat.messages["Skeptic"][0][1].content
    deal_maker_prompt = chat.messages["Deal Maker"][0][1].content
    chairman_prompt   = chat.messages["Chairman"][0][1].content

    assert "DEALMAKER-ONLY-TEXT" not in skeptic_prompt
    assert "SKEPTIC-ONLY-TEXT" not in deal_maker_prompt
    assert "SKEPTIC-ONLY-TEXT" in chairman_prompt
    assert "DEALMAKER-ONLY-TEXT" in chairman_prompt
    assert "Acme Logistics LLC" in chairman_prompt


def test_skeptic_failure_is_isolated(lead, recast):
    chat = StubChat(fail={"Skeptic"})
    report = _convene(Council(chat, max_retries=1), lead, recast)

    assert len(report.opinions) == 3
    skeptic = report.opinion("Skeptic")
    assert skeptic.verdict == "Review"
    assert skeptic.key_points == []
    assert skeptic.degraded
    assert skeptic.analysis == "Skeptic failed to analyze."
    assert not report.opinion("Deal Maker").degraded
    assert not report.opinion("Chairman").degraded
    # Chairman still convened, with the fallback text in front of it
    assert "Skeptic failed to analyze." in chat.messages["Chairman"][0][1].content


def test_total_provider_failure_still_returns_full_report(lead, recast):
    chat = StubChat(fail={"Skeptic", "Deal Maker", "Chairman"})
    report = _convene(Council(chat, max_retries=2), lead, recast)

    assert len(report.opinions) == 3
    assert all(o.degraded and o.verdict == "Review" and o.confidence == 50 for o in report.opinions)
    assert report.final_recommendation == "Chairman failed to convene."
    assert report.risk_score == 5
    # each persona retried once before giving up
    assert len(chat.messages["Skeptic"]) == 2


def test_timeout_degrades_only_the_slow_persona(lead, recast):
    chat = StubChat(delays={"Deal Maker": 0.5})
    report = _convene(Council(chat, timeout=0.1, max_retries=1), lead, recast)

    assert report.opinion("Deal Maker").degraded
    assert not report.opinion("Skeptic").degraded
    assert not report.opinion("Chairman").degraded


def test_fenced_reply_is_accepted(lead, recast):
    fenced = f"```json\n{opinion_json('Decline', 90, 'No.')}\n```"
    chat = StubChat(replies={"Skeptic": fenced})
    report = _convene(Council(chat), lead, recast)

    assert report.opinion("Skeptic").verdict == "Decline"
    assert not report.opinion("Skeptic").degraded


def test_malformed_reply_is_retried_with_stricter_prompt(lead, recast):
    chat = StubChat(replies={"Chairman": ["The deal looks fine to me.", opinion_json("Approve", 60)]})
    report = _convene(Council(chat, max_retries=2), lead, recast)

    chairman = report.opinion("Chairman")
    assert chairman.verdict == "Approve"
    assert not chairman.degraded
    retry_prompt = chat.messages["Chairman"][1][1].content
    assert "Return STRICT JSON only" in retry_prompt


def test_schema_violation_degrades(lead, recast):
    chat = StubChat(replies={"Deal Maker": '{"verdict": "Maybe", "confidence": 40, "analysis": "?"}'})
    report = _convene(Council(chat, max_retries=1), lead, recast)

    assert report.opinion("Deal Maker").degraded


def test_persona_llm_override(lead, recast):
    shared  = StubChat(replies={"Chairman": opinion_json("Decline", 100, "Decline.")})
    skeptic = StubChat(replies={"Skeptic": opinion_json("Decline", 95, "Own model.")})
    report  = _convene(Council(shared, persona_llms={"Skeptic": skeptic}), lead, recast)

    assert report.opinion("Skeptic").analysis == "Own model."
    assert "Skeptic" not in shared.messages
    assert report.risk_score == 10


@pytest.mark.parametrize("verdict, confidence, expected", [
    ("Approve", 100, 1),
    ("Approve", 50, 6),
    ("Decline", 100, 10),
    ("Decline", 0, 1),
    ("Review", 90, 5),
])
def test_risk_score_from_chairman(verdict, confidence, expected):
    chairman = CouncilOpinion(persona="Chairman", verdict=verdict, confidence=confidence, analysis="x")

    assert risk_score(chairman) == expected


def test_fallback_texts():
    assert fallback_opinion("Deal Maker").analysis == "Deal Maker failed to analyze."
    assert fallback_opinion("Chairman").analysis == "Chairman failed to convene."
    assert fallback_opinion("Chairman").confidence == 50


def test_deal_context_lists_recast_figures(lead, recast):
    context = deal_context(lead, recast)

    assert "Acme Logistics LLC" in context
    assert "$1,200,000" in context
    assert "SBA 504" in context
    assert "EBITDA:        $220,000" in context
    assert "SDE:           $320,000" in context
    assert "DSCR:          1.22x" in context
    assert "Officer Compensation ($100,000)" in context


def test_deal_context_without_add_backs(lead):
    recast = spread(TaxReturnData(year=2023, net_income=10_000))

    assert "Add-backs:     None" in deal_context(lead.model_copy(update={"loan_program": None}), recast)


def test_demo_persona_models_replay_fixture_opinions(lead, recast):
    from fixtures import DEMO_OPINIONS
    from llm import build_persona_llms

    report = _convene(Council(llm=None, persona_llms=build_persona_llms()), lead, recast)

    for opinion in report.opinions:
        assert not opinion.degraded
        assert opinion.verdict == DEMO_OPINIONS[opinion.persona]["verdict"]
