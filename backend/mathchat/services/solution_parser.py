import json
import logging
import re
from typing import Any, Dict

from mathchat.core.exceptions import SolutionParseError

logger = logging.getLogger(__name__)

# Everything before the first "{" and after the last "}".
# Stray braces inside the wrapping text are not detected.
_WRAPPER_RE = re.compile(r"^[^{]*|[^}]*$")


def strip_wrapping_text(text: str) -> str:
    """Drop incidental text the model put around the JSON object"""
    return _WRAPPER_RE.sub("", text or "").strip()


def extract_json_payload(text: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    ``'Sure! {"problemSummary": "x"} Thanks'`` gives ``{"problemSummary": "x"}``.
    Raises SolutionParseError when nothing parseable is left or the result
    is not an object.
    """
    cleaned = strip_wrapping_text(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Logic engine failure, unparseable model output: {str(e)} | {cleaned[:200]!r}")
        raise SolutionParseError() from e

    if not isinstance(payload, dict):
        logger.error(f"Logic engine failure, model output is a {type(payload).__name__}, not an object")
        raise SolutionParseError()

    return payload
