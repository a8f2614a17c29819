"""Human-readable strings for elapsed times, stoppages, grades and pace deltas."""
from typing import Union

from pacer.models.enums import PaceUnit


def format_elapsed_time(total_seconds: int) -> str:
    """Seconds as zero-padded HH:MM:SS (hours are not wrapped at 24)."""
    total_seconds = int(total_seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_delay_time(seconds: int) -> str:
    """
    Stoppage duration in compact form.

    Examples: "No delay", "45s", "5m", "5m 30s", "1h 2m 3s".
    """
    seconds = int(seconds)
    if seconds == 0:
        return "No delay"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        minutes, rest = divmod(seconds, 60)
        return f"{minutes}m" if rest == 0 else f"{minutes}m {rest}s"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    rest = seconds % 60
    result = f"{hours}h"
    if minutes > 0:
        result += f" {minutes}m"
    if rest > 0:
        result += f" {rest}s"
    return result


def format_grade(grade_pct: float) -> str:
    """'flat' below 0.5 %, otherwise e.g. '4.2% uphill' / '3.0% downhill'."""
    magnitude = abs(grade_pct)
    if magnitude < 0.5:
        return "flat"
    direction = "uphill" if grade_pct >= 0 else "downhill"
    return f"{magnitude:.1f}% {direction}"


def format_pace_adjustment(pace_delta: float, pace_unit: Union[PaceUnit, str]) -> str:
    """
    Describe a pace difference in seconds per unit.

    Examples: "no adjustment", "12s slower per km", "1:05 faster per mile".
    """
    magnitude = abs(pace_delta)
    if magnitude < 1:
        return "no adjustment"

    direction = "slower" if pace_delta > 0 else "faster"
    minutes, seconds = divmod(int(round(magnitude)), 60)
    if minutes > 0:
        amount = f"{minutes}:{seconds:02d}"
    else:
        amount = f"{seconds}s"

    unit = "mile" if pace_unit == PaceUnit.MIN_PER_MI else "km"
    return f"{amount} {direction} per {unit}"
