"""
Utility modules for callrelay.
"""
from callrelay.utils.logger import setup_logger
from callrelay.utils.phone import parse_phone_numbers, mask_phone_number

__all__ = [
    "setup_logger",
    "parse_phone_numbers",
    "mask_phone_number",
]
