import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "")
GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")

# ─── Council model ─────────────────────────────────────────────
COUNCIL_MODEL           = os.getenv("COUNCIL_MODEL", "llama-3.3-70b-versatile")
COUNCIL_TEMPERATURE     = float(os.getenv("COUNCIL_TEMPERATURE", "0.2"))
COUNCIL_TIMEOUT_SECONDS = float(os.getenv("COUNCIL_TIMEOUT_SECONDS", "60"))
COUNCIL_MAX_RETRIES     = int(os.getenv("COUNCIL_MAX_RETRIES", "2"))

# ─── Runner ────────────────────────────────────────────────────
POLL_INTERVAL     = float(os.getenv("POLL_INTERVAL", "1.0"))
PRODUCER_INTERVAL = float(os.getenv("PRODUCER_INTERVAL", "6.0"))

# Canned persona replies + fixture leads, no API key needed
DEMO_MODE = _flag("DEMO_MODE")
