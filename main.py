"""
main.py: start the underwriting runner (and the demo producer in DEMO_MODE).

    python main.py
"""
import threading
import time

# Load env vars before any other imports touch them
import config

from council import Council
from db import init_db
from llm import build_llm, build_persona_llms
from orchestrator import run_orchestrator
from producer import run_producer
from workflow import build_workflow


def build_council() -> Council:
    if config.DEMO_MODE:
        return Council(llm=None, persona_llms=build_persona_llms(),
                       timeout=config.COUNCIL_TIMEOUT_SECONDS, max_retries=config.COUNCIL_MAX_RETRIES)
    return Council(llm=build_llm(),
                   timeout=config.COUNCIL_TIMEOUT_SECONDS, max_retries=config.COUNCIL_MAX_RETRIES)


def main():
    init_db()
    workflow = build_workflow(build_council())

    if config.DEMO_MODE:
        producer_thread = threading.Thread(
            target=run_producer,
            kwargs={"interval": config.PRODUCER_INTERVAL},
            daemon=True,
            name="Producer",
        )
        producer_thread.start()

        # Give producer time to insert first lead before orchestrator starts polling
        time.sleep(2)

    run_orchestrator(workflow)


if __name__ == "__main__":
    main()
