"""String enums shared by the plan model and the analysis layer."""
from enum import Enum


class PaceUnit(str, Enum):
    MIN_PER_KM = "min_per_km"
    MIN_PER_MI = "min_per_mi"


class PaceMode(str, Enum):
    PACE = "pace"              # plan.pace is the target average pace
    TIME = "time"              # plan.target_time_seconds is the target finish time
    NORMALIZED = "normalized"  # plan.pace is a flat-equivalent (normalized) pace


class PacingStrategyName(str, Enum):
    FLAT = "flat"
    LINEAR = "linear"
