"""
Lead score normalization.

CallRail reports lead scores in several shapes depending on account setup:
a bare number, a label string ("good", "Very_Good"), or an object with
"percent" / "score" sub-fields. Each shape has its own normalizer; all of
them return a percentage and none of them raise.

Unscored calls get DEFAULT_SCORE_PERCENT (30, a "poor" lead) rather than 0
so a missing score does not zero out the call.
"""

from enum import Enum
from typing import Any, Callable, Dict, Union

DEFAULT_SCORE_PERCENT = 30

LABEL_PERCENTS = {
    "very_poor": 10,
    "poor": 30,
    "fair": 50,
    "good": 70,
    "very_good": 90,
}

Number = Union[int, float]


class ScoreShape(str, Enum):
    MISSING = "missing"
    NUMERIC = "numeric"
    LABEL = "label"
    STRUCTURED = "structured"
    OTHER = "other"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def score_shape(raw: Any) -> ScoreShape:
    """Classify a raw lead_score value by shape."""
    if not raw:
        return ScoreShape.MISSING
    if _is_number(raw):
        return ScoreShape.NUMERIC
    if isinstance(raw, str):
        return ScoreShape.LABEL
    if isinstance(raw, dict):
        return ScoreShape.STRUCTURED
    return ScoreShape.OTHER


def _from_missing(raw: Any) -> Number:
    return DEFAULT_SCORE_PERCENT


def _from_numeric(raw: Number) -> Number:
    # Out-of-range values pass through unchanged
    return raw


def _from_label(raw: str) -> Number:
    return LABEL_PERCENTS.get(raw.strip().lower(), DEFAULT_SCORE_PERCENT)


def _coerce_sub_field(value: Any) -> Number:
    """Numeric value of a structured sub-field, 0 when unusable."""
    if _is_number(value):
        return value
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0
        return int(number) if number.is_integer() else number
    return 0


def _from_structured(raw: Dict) -> Number:
    return (
        _coerce_sub_field(raw.get("percent"))
        or _coerce_sub_field(raw.get("score"))
        or DEFAULT_SCORE_PERCENT
    )


_NORMALIZERS: Dict[ScoreShape, Callable[[Any], Number]] = {
    ScoreShape.MISSING: _from_missing,
    ScoreShape.NUMERIC: _from_numeric,
    ScoreShape.LABEL: _from_label,
    ScoreShape.STRUCTURED: _from_structured,
    ScoreShape.OTHER: _from_missing,
}


def normalize_lead_score(raw: Any) -> Number:
    """
    Convert any lead_score representation to a percentage.

    Args:
        raw: The call's lead_score field, in whatever shape CallRail sent

    Returns:
        Percentage (normally 0-100; numeric inputs are not clamped)
    """
    return _NORMALIZERS[score_shape(raw)](raw)


def score_percent(call: Dict) -> Number:
    """Lead score percentage for a CallRail call record."""
    return normalize_lead_score(call.get("lead_score"))
