import json

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_groq import ChatGroq

import config
from fixtures import DEMO_OPINIONS


def build_llm():
    """Live chat model, constrained to answer with a single JSON object."""
    if not config.GROQ_API_KEY:
        raise RuntimeError("GROQ_API_KEY is empty or not set in .env")
    llm = ChatGroq(
        model=config.COUNCIL_MODEL,
        temperature=config.COUNCIL_TEMPERATURE,
        api_key=config.GROQ_API_KEY,
    )
    return llm.bind(response_format={"type": "json_object"})


def build_persona_llms() -> dict:
    """Demo mode: one replaying fake model per persona."""
    return {
        persona: FakeListChatModel(responses=[json.dumps(opinion)])
        for persona, opinion in DEMO_OPINIONS.items()
    }
