"""
Phone number list helpers.
"""
from typing import Iterable, List, Union


def parse_phone_numbers(value: Union[str, Iterable[str], None]) -> List[str]:
    """Split a comma-separated recipient string into an ordered list.

    Surrounding whitespace is trimmed, blanks are dropped and repeated
    numbers keep only their first position.

        >>> parse_phone_numbers(" +1555,, +1666 ,")
        ['+1555', '+1666']
    """
    if not value:
        return []

    parts = value.split(",") if isinstance(value, str) else value

    numbers: List[str] = []
    for part in parts:
        number = str(part).strip()
        if number and number not in numbers:
            numbers.append(number)
    return numbers


def mask_phone_number(number: str) -> str:
    """Hide all but the last four digits of a number."""
    if len(number) <= 4:
        return "***"
    return f"***{number[-4:]}"
