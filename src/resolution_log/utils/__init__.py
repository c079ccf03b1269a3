"""Utility modules."""

from .formatting import (
    format_delta,
    format_number,
    format_percent,
    format_signed_percent,
    format_value,
    round_percent,
    signed_number,
)

__all__ = [
    "format_delta",
    "format_number",
    "format_percent",
    "format_signed_percent",
    "format_value",
    "round_percent",
    "signed_number",
]
