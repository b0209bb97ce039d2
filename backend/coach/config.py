import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from backend/.env
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Remote workflow names, one per analyzer plus the master conductor
WORKFLOW_NAMES = [
    "master-conductor",
    "constraint-analyzer",
    "offer-analyzer",
    "financial-calculator",
    "money-model-architect",
    "psychology-optimizer",
    "implementation-planner",
    "coaching-methodology",
]


class Config:
    WORKFLOW_BASE_URL = os.getenv(
        "COACH_WORKFLOW_BASE_URL",
        "https://purposewaze.app.n8n.cloud/webhook-test",
    ).rstrip("/")
    USE_MASTER_CONDUCTOR = _env_bool("COACH_USE_MASTER_CONDUCTOR", False)
    ANALYZER_MODE = os.getenv("COACH_ANALYZER_MODE", "local").strip().lower()  # local | remote
    ANALYZER_TIMEOUT = float(os.getenv("COACH_ANALYZER_TIMEOUT", "10"))
    WORKFLOW_TIMEOUT = float(os.getenv("COACH_WORKFLOW_TIMEOUT", "30"))
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("COACH_CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ]
    LOG_LEVEL = os.getenv("COACH_LOG_LEVEL", "INFO").upper()


def workflow_url(name: str) -> str:
    """Resolve the webhook URL of a workflow.

    COACH_WORKFLOW_URL_<NAME> (dashes as underscores) overrides the
    default `<base>/<name>`.
    """
    override = os.getenv(f"COACH_WORKFLOW_URL_{name.upper().replace('-', '_')}")
    if override:
        return override
    return f"{Config.WORKFLOW_BASE_URL}/{name}"
