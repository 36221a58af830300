"""Shared validation utilities"""

from typing import Any, Optional

from ..errors import ValidationError

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def validate_day_of_week(day_of_week: Optional[int], field: str = "day_of_week") -> int:
    """
    Validate a Sunday-based day index.

    Args:
        day_of_week: 0 (Sunday) through 6 (Saturday)
        field: Field name used in the error message

    Returns:
        The day as an int

    Raises:
        ValidationError: If the day is missing, not an integer or out of range
    """
    if day_of_week is None:
        raise ValidationError(f"{field} is required", details={"field": field})

    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int):
        raise ValidationError(
            f"{field} must be an integer", details={"field": field, "value": day_of_week}
        )

    if day_of_week < 0 or day_of_week > 6:
        raise ValidationError(
            "Day of week must be between 0 (Sunday) and 6 (Saturday)",
            details={"field": field, "value": day_of_week},
        )
    return day_of_week


def require_fields(data: dict[str, Any], fields: list[str]) -> None:
    """
    Ensure every listed key is present and not empty.

    Raises:
        ValidationError: Naming the missing fields
    """
    missing = [f for f in fields if data.get(f) is None or data.get(f) == ""]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}", details={"fields": missing}
        )


def require_text(value: Optional[str], field: str) -> str:
    """Strip a free-text value and reject it when blank"""
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    return value.strip()
