import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULTS = {
    "MOVIEMATCH_LOG_LEVEL": "INFO",
    "MOVIEMATCH_LOG_DIR": "logs",
    "MOVIEMATCH_QUEUE_SIZE": "1000",
    "MOVIEMATCH_CANDIDATE_QUEUE_SIZE": "100",
    "MOVIEMATCH_CHECKPOINT_EVERY": "100",
    "MOVIEMATCH_DB": "data/movies.db",
}


def load_env() -> None:
    """Load .env from the working directory if present. Existing variables win."""
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path)


def env_str(name: str) -> str:
    return os.getenv(name, DEFAULTS.get(name, ""))


def env_int(name: str) -> int:
    """Read an integer setting, raising ValueError with the variable name on bad input."""
    raw = env_str(name)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
