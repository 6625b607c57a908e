"""
llm_client.py

Client for the local inference endpoint. Builds a mode-specific prompt from a
context payload, posts it, and resolves to a cleaned-up suggestion string.
"""

import enum
import json
import logging
import re
import threading
from concurrent.futures import Future

import requests

from ..config import settings

logger = logging.getLogger(__name__)

RESULT_FIELD = "response"

_ORDINAL_PREFIX = re.compile(r"^\d+\.(?!\d)\s*")
_FENCE_LINE = re.compile(r"^\s*```[\w+#.-]*\s*$")


class Mode(enum.Enum):
    COMPLETE = "complete"
    DESCRIBE = "describe"
    SUMMARIZE_PROJECT = "summarize_project"


class DispatchError(Exception):
    """A request to the inference endpoint did not produce a response."""


class TransportError(DispatchError):
    """The endpoint was unreachable, timed out, or answered with an error status."""


COMPLETE_PROMPT = (
    "Complete the current line of {language} code at cursor position {line}:{col}. "
    "Understand the whole code and give a valid code completion. "
    "Return ONLY the missing text to append to the current line. "
    "Do not provide multiple options, any commentary, or additional formatting. "
    "Do not enclose your code completion in any quotes or other delimiters. "
    "Output nothing but the exact code snippet.\n\n{text}"
)

DESCRIBE_PROMPT = (
    "Explain what the following {language} file does. "
    "Start with a one-sentence overview, then describe its main functions, "
    "classes and how they fit together. Answer in plain prose.\n\n{text}"
)

SUMMARIZE_PROJECT_PROMPT = (
    "Below is a list of the source files in a software project, each followed by "
    "the names of the symbols it defines. Summarize what the project does, how it "
    "is organised, and which files are the most important. Answer in plain prose.\n\n{text}"
)

PROMPTS = {
    Mode.COMPLETE: COMPLETE_PROMPT,
    Mode.DESCRIBE: DESCRIBE_PROMPT,
    Mode.SUMMARIZE_PROJECT: SUMMARIZE_PROJECT_PROMPT,
}


def build_prompt(payload, mode):
    """Render the instruction for ``mode`` around the serialized context."""
    return PROMPTS[mode].format(
        language=payload.language_tag,
        line=payload.cursor_line + 1,
        col=payload.cursor_col,
        text=payload.text,
    )


def unwrap_response(body):
    """
    Pull the generated text out of a response body.

    A JSON object carrying the result field yields that field; anything else
    (plain text, other JSON, garbage) is returned verbatim.
    """
    try:
        envelope = json.loads(body)
    except ValueError:
        return body
    if isinstance(envelope, dict) and isinstance(envelope.get(RESULT_FIELD), str):
        return envelope[RESULT_FIELD]
    return body


def clean_suggestion(text):
    """Strip whitespace, a leading "1." style ordinal, and code fences."""
    text = text.strip()
    text = _ORDINAL_PREFIX.sub("", text, count=1)
    text = text.strip()
    lines = [line for line in text.split("\n") if not _FENCE_LINE.match(line)]
    text = "\n".join(lines).replace("```", "")
    return text.strip()


class LLMClient:
    """Sends one request per call to an Ollama-style ``/api/generate`` endpoint."""

    def __init__(self, base_url=None, model=None, timeout=None, session=None):
        """
        :param base_url: Override for settings.LLM_BASE_URL.
        :param model: Override for settings.LLM_MODEL.
        :param timeout: Seconds to wait for the full response; 0 means no timeout.
        :param session: A requests.Session (or compatible) used for all requests.
        """
        self.base_url = (base_url or settings.LLM_BASE_URL).rstrip("/")
        self.model = model or settings.LLM_MODEL
        self.timeout = settings.LLM_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self):
        return self.base_url + settings.LLM_GENERATE_PATH

    def dispatch(self, payload, mode):
        """
        Issue the request in the background.

        :return: A concurrent.futures.Future resolving to the cleaned text, to
                 None when the model produced nothing, or failing with DispatchError.
        """
        return self.submit(self.request, payload, mode)

    def submit(self, fn, *args):
        """
        Run ``fn(*args)`` on a daemon thread and return a Future for its result.

        The thread is a daemon, so an unanswered request never holds up exit.
        """
        future = Future()
        future.set_running_or_notify_cancel()

        def run():
            try:
                result = fn(*args)
            except Exception as e:
                future.set_exception(e)
            else:
                future.set_result(result)

        threading.Thread(target=run, name="tangerine-llm", daemon=True).start()
        return future

    def request(self, payload, mode):
        """Blocking version of dispatch()."""
        body = {
            "model": self.model,
            "prompt": build_prompt(payload, mode),
            "stream": False,
        }
        logger.debug("POST %s (%s, %d chars of context)", self.endpoint, mode.value, len(payload.text))
        try:
            response = self.session.post(self.endpoint, json=body, timeout=self.timeout or None)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"LLM request failed: {e}") from e

        logger.info("Received %s response from %s", mode.value, self.endpoint)
        text = clean_suggestion(unwrap_response(response.text))
        return text or None

    def close(self):
        self.session.close()
