"""
Response Normalizer
Turns free-form or JSON-ish provider text into the canonical result schema.

Providers are prompted for JSON but do not reliably comply, so parsing is
two-tier: the first balanced JSON object in the text, then keyword
extraction backed by the pest knowledge tables. `normalize` never raises.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from backend.schemas import SEVERITIES, TASK_CHAT, ChatResult, StructuredResult
from backend.services.knowledge import UNKNOWN_PEST, detect_pest, pest_profile

logger = logging.getLogger(__name__)

CONFIDENCE_FLOOR = 60
CONFIDENCE_CEILING = 95
DEFAULT_CONFIDENCE = 75
KEYWORD_MATCH_CONFIDENCE = 85
NO_MATCH_CONFIDENCE = 70

LIST_FIELDS = (
    "symptoms",
    "treatment",
    "prevention",
    "organicTreatment",
    "chemicalTreatment",
    "cropsDamaged",
)


def strip_code_fences(content: str) -> str:
    txt = (content or "").strip()
    if txt.startswith("```json"):
        txt = txt[7:]
    elif txt.startswith("```"):
        txt = txt[3:]
    if txt.endswith("```"):
        txt = txt[:-3]
    return txt.strip()


def find_json_block(content: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring, ignoring braces inside strings."""
    start = content.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(content)):
        ch = content[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return content[start:i + 1]
    return None


def extract_first_json_object(content: str) -> Optional[Dict[str, Any]]:
    """Parse the first JSON object in a text blob, or return None."""
    txt = strip_code_fences(content)
    blob = find_json_block(txt)
    if blob is None:
        return None
    try:
        data = json.loads(blob)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


def clamp_confidence(value: Any) -> int:
    """Coerce a model-reported confidence into [60, 95]; absent or zero counts as 75."""
    try:
        number = float(value)
    except OverflowError:
        # integer too large for a float; only its sign matters once clamped
        number = float("inf") if value > 0 else float("-inf")
    except (TypeError, ValueError):
        number = 0.0
    if number != number:  # NaN
        number = 0.0
    if not number:
        number = DEFAULT_CONFIDENCE
    return int(round(min(max(number, CONFIDENCE_FLOOR), CONFIDENCE_CEILING)))


def _as_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_as_text(v) for v in value if v is not None]
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [_as_text(value)]


def from_parsed(data: Dict[str, Any]) -> StructuredResult:
    severity = str(data.get("severity", "medium")).strip().lower()
    if severity not in SEVERITIES:
        severity = "medium"
    fields: Dict[str, Any] = {
        "pestName": _as_text(data.get("pestName"), UNKNOWN_PEST) or UNKNOWN_PEST,
        "confidence": clamp_confidence(data.get("confidence")),
        "severity": severity,
        "description": _as_text(data.get("description")),
        "seasonality": _as_text(data.get("seasonality")),
    }
    for name in LIST_FIELDS:
        fields[name] = _as_list(data.get(name))
    return StructuredResult(**fields)


def from_keywords(text: str, language: str) -> StructuredResult:
    pest = detect_pest(text)
    if pest:
        confidence = KEYWORD_MATCH_CONFIDENCE
    else:
        pest, confidence = UNKNOWN_PEST, NO_MATCH_CONFIDENCE
    return StructuredResult(pestName=pest, confidence=confidence, severity="medium", **pest_profile(pest, language))


def normalize(raw_text: Optional[str], language: str, task_kind: str) -> Union[StructuredResult, ChatResult]:
    if task_kind == TASK_CHAT:
        return ChatResult(content=raw_text or "")

    text = raw_text if isinstance(raw_text, str) else _as_text(raw_text)
    parsed = extract_first_json_object(text)
    if parsed is not None:
        try:
            return from_parsed(parsed)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("[normalizer] could not coerce parsed JSON (%s), using keyword extraction", e)
    else:
        logger.debug("[normalizer] no JSON object in provider text, using keyword extraction")
    return from_keywords(text, language)
