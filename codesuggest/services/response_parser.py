"""
Parsing of free-form model output into validated suggestions.
"""
import json
import math
from typing import Any, Dict, List, Optional

import structlog

from codesuggest.models import Category, Severity, Suggestion, SuggestionStatus

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE = 0.5


def extract_json_array(text: Optional[str]) -> str:
    """
    Cut the JSON array out of model output.

    Everything between the first '[' and the last ']' is taken as the
    payload, so prose or code fences around the array are tolerated.

    Returns:
        The array text, or "[]" when no bracket pair is found.
    """
    if not text:
        return "[]"
    start = text.find("[")
    end = text.rfind("]")
    if start >= 0 and end > start:
        return text[start:end + 1]
    return "[]"


def _field(obj: Dict[str, Any], *names: str) -> Any:
    for name in names:
        value = obj.get(name)
        if value is not None:
            return value
    return None


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError("boolean is not a line number")
    return int(value)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_confidence(value: Any) -> float:
    if value is None:
        return DEFAULT_CONFIDENCE
    if isinstance(value, bool):
        raise ValueError("boolean is not a confidence")
    confidence = float(value)
    if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
        raise ValueError(f"confidence {value!r} outside [0, 1]")
    return confidence


def to_suggestion(obj: Any, fallback_file_path: str) -> Suggestion:
    """
    Map one decoded JSON element to a Suggestion.

    Missing fields get safe defaults; severity and category fall back to
    INFO and BEST_PRACTICE; status is always PENDING.

    Raises:
        ValueError: If the element is not an object or a field cannot be
            converted (including an out-of-range confidence).
    """
    if not isinstance(obj, dict):
        raise ValueError(f"expected an object, got {type(obj).__name__}")

    file_path = _field(obj, "filePath", "file_path")
    return Suggestion(
        file_path=_as_text(file_path) or fallback_file_path,
        start_line=_as_int(_field(obj, "startLine", "start_line")),
        end_line=_as_int(_field(obj, "endLine", "end_line")),
        original_code=_as_text(_field(obj, "originalCode", "original_code")),
        suggested_code=_as_text(_field(obj, "suggestedCode", "suggested_code")),
        explanation=_as_text(obj.get("explanation")),
        severity=Severity.parse(obj.get("severity")),
        category=Category.parse(obj.get("category")),
        confidence=_as_confidence(obj.get("confidence")),
        status=SuggestionStatus.PENDING,
    )


def parse_suggestions(model_output: Optional[str], fallback_file_path: str) -> List[Suggestion]:
    """
    Parse model output into suggestions.

    Never raises: undecodable output yields an empty list, and a malformed
    element is skipped without affecting the others.

    Args:
        model_output: Raw text returned by the model.
        fallback_file_path: Path used when an element has no filePath.

    Returns:
        Parsed suggestions in response order.
    """
    payload = extract_json_array(model_output)
    try:
        items = json.loads(payload)
    except (json.JSONDecodeError, RecursionError) as e:
        logger.warning(
            "Failed to decode model response",
            file_path=fallback_file_path,
            error=str(e),
            response=(model_output or "")[:500],
        )
        return []

    if not isinstance(items, list):
        return []

    suggestions = []
    for index, item in enumerate(items):
        try:
            suggestions.append(to_suggestion(item, fallback_file_path))
        except (TypeError, ValueError) as e:
            logger.warning(
                "Skipping malformed suggestion",
                file_path=fallback_file_path,
                index=index,
                error=str(e),
            )
    return suggestions
