from __future__ import annotations

import math
from typing import Any, Optional

from ..core.constants import PIN_LENGTH
from ..core.exceptions import ValidationError


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid id") from None
    if number <= 0:
        raise ValidationError(f"{field_name} is not a valid id")
    return number


def require_pin_format(value: Any, field_name: str = "PIN") -> str:
    text = "" if value is None else str(value)
    if len(text) != PIN_LENGTH or not (text.isascii() and text.isdigit()):
        raise ValidationError(f"{field_name} must be exactly {PIN_LENGTH} digits")
    return text


def as_coordinate(value: Any) -> Optional[float]:
    """Coerce a submitted coordinate to float; None when missing or unparsable."""
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
