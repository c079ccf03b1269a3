"""Numeric formatting for log lines."""

import math

from ..content.models import DisplayMetadata, RoundingMode

# Float noise guard: 0.29 * 100 must round "up" to 29, not 30
_PERCENT_PRECISION = 6


def format_number(value: float) -> str:
    """Format a number in its natural form.

    Integral values render without a decimal point; other values keep at
    most two decimals with trailing zeros removed.

    Args:
        value: Number to format

    Returns:
        Display string (e.g., '12', '-3', '1.5')
    """
    if float(value).is_integer():
        return str(int(value))
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def signed_number(delta: float) -> str:
    """Format a delta with an explicit sign ('+' for zero and positive values)."""
    formatted = format_number(delta)
    return formatted if delta < 0 else f"+{formatted}"


def round_percent(value: float, mode: RoundingMode = RoundingMode.NEAREST) -> int:
    """Convert a ratio to a whole percentage using the given rounding mode.

    Args:
        value: Ratio to convert (0.5 -> 50)
        mode: Rounding mode to apply after scaling

    Returns:
        Whole percentage
    """
    scaled = round(value * 100, _PERCENT_PRECISION)
    if mode == RoundingMode.UP:
        return math.ceil(scaled)
    if mode == RoundingMode.DOWN:
        return math.floor(scaled)
    # Half away from zero; Python's round() would use banker's rounding
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))


def format_percent(value: float, mode: RoundingMode = RoundingMode.NEAREST) -> str:
    """Format a ratio as a percentage string (0.5 -> '50%')."""
    return f"{round_percent(value, mode)}%"


def format_signed_percent(value: float, mode: RoundingMode = RoundingMode.NEAREST) -> str:
    """Format a ratio delta as a signed percentage string (0.5 -> '+50%')."""
    rounded = round_percent(value, mode)
    return f"{rounded}%" if rounded < 0 else f"+{rounded}%"


def format_value(value: float, metadata: DisplayMetadata) -> str:
    """Format a value according to its metadata's percent flag."""
    if metadata.display_as_percent:
        return format_percent(value, metadata.rounding)
    return format_number(value)


def format_delta(delta: float, metadata: DisplayMetadata) -> str:
    """Format a signed delta according to its metadata's percent flag."""
    if metadata.display_as_percent:
        return format_signed_percent(delta, metadata.rounding)
    return signed_number(delta)
