import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT = 10.0

def load_env_file(path: str = ".env"):
    """
    Load environment variables from a .env file into os.environ.
    Does not override existing values.
    """
    p = Path(path)
    if not p.exists():
        return

    try:
        with open(p) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, val = line.split('=', 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = val
    except OSError as e:
        logger.warning(f"Failed to load .env: {e}")

def get_openai_key() -> Optional[str]:
    """Get the OpenAI API key, or None if missing."""
    key = os.environ.get("OPENAI_API_KEY")
    # Handle the template default
    if not key or key == "your_key_here":
        return None
    return key

def get_model() -> str:
    return os.environ.get("NEWSIMPACT_MODEL") or DEFAULT_MODEL

def get_request_timeout() -> float:
    """Per-request timeout in seconds for every backend call."""
    raw = os.environ.get("NEWSIMPACT_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid NEWSIMPACT_TIMEOUT={raw!r}")
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT
