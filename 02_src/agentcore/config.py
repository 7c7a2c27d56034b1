"""Project-level configuration and path helpers."""

from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
SRC_DIR = PROJECT_ROOT / "02_src"
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "agent_runs.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"
DEFAULT_TRANSCRIPT_PATH = LOGS_DIR / "transcript.log"
DEFAULT_AGENTS_DIR = SRC_DIR / "agents"

DEFAULT_RAW_LOG_TAIL_LINES = 1000
DEFAULT_SSE_POLL_INTERVAL = 1.0

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_agents_dir(env_value: PathLike | None = None) -> Path:
    """Resolve AGENTS_DIR to an absolute path."""
    if not env_value:
        return DEFAULT_AGENTS_DIR

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate
