"""
Validator (The Safety Net)
Inspects raw provider text before it is normalized: flags empty answers and
answers that look cut off so the provider client can re-issue the request
with a bigger output budget.
"""
from dataclasses import dataclass

# Trailing markers that indicate the model stopped mid-sentence. The last one
# is a UTF-8 ellipsis that was decoded as cp1252 somewhere upstream.
ELLIPSIS_MARKERS = ("...", "…", "â€¦")


@dataclass(frozen=True)
class ValidationOutcome:
    ok: bool
    suspected_truncation: bool = False


def looks_truncated(text: str) -> bool:
    """Return True when `text` looks like a truncated model answer.

    Two signals:
      - the trimmed text ends with an ellipsis
      - the text is JSON-looking and its curly braces do not balance
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return False
    if trimmed.endswith(ELLIPSIS_MARKERS):
        return True
    if "{" in trimmed and trimmed.count("{") != trimmed.count("}"):
        return True
    return False


def validate(raw_text: str) -> ValidationOutcome:
    if not raw_text or not raw_text.strip():
        return ValidationOutcome(ok=False)
    return ValidationOutcome(ok=True, suspected_truncation=looks_truncated(raw_text))
