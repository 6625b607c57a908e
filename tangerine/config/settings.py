"""Configuration values for tangerine.

Every value can be overridden in the environment (``TANGERINE_*``) and again
on the command line or when constructing the objects that use it.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _env_float(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def _env_bool(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
    return default


# Local inference endpoint (Ollama-compatible /api/generate)
LLM_BASE_URL = os.environ.get("TANGERINE_BASE_URL", "http://localhost:11434")
LLM_GENERATE_PATH = "/api/generate"
LLM_MODEL = os.environ.get("TANGERINE_MODEL", "deepseek-coder:6.7b")

# Seconds to wait for a full (non-streamed) response; 0 disables the timeout
LLM_TIMEOUT = _env_float("TANGERINE_TIMEOUT", 120.0)

# Time in seconds to wait after the last qualifying edit before querying the LLM
DEBOUNCE_DELAY = _env_float("TANGERINE_DEBOUNCE", 4.0)

# Time in seconds during which edits do not arm the timer after an acceptance
SUPPRESS_DURATION = 1.0

AUTO_TRIGGER = _env_bool("TANGERINE_AUTO_TRIGGER", True)

# Never auto-trigger in these buffers, whatever AUTO_TRIGGER says
DISALLOWED_BUFFER_KINDS = frozenset(
    ["scratch", "prompt", "tree", "terminal", "help", "quickfix"]
)
DISALLOWED_FILETYPES = frozenset(["sql", "markdown"])
DISALLOWED_EXTENSIONS = frozenset([".sql", ".md", ".markdown"])

# Project summary scan limits
PROJECT_SKIP_DIRS = frozenset(
    [
        ".git", ".hg", ".svn", "__pycache__", "node_modules", "venv", ".venv",
        "env", ".tox", ".mypy_cache", ".pytest_cache", "build", "dist", "target",
    ]
)
PROJECT_MAX_FILES = 200
PROJECT_MAX_FILE_BYTES = 200_000
