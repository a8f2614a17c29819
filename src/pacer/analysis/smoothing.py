"""
Smoothing parameters for grade estimation, integration and pace charts.

Stored settings (system defaults and per-course overrides) use plain
numbers where 0 carries a per-parameter meaning. SmoothingConfig.resolve()
is the only place those numbers are interpreted:

  grade window  Wg   0 -> raw adjacent-point slope
  pace window   Wp   0 -> no chart smoothing
  sample step   Δ    0 -> DEFAULT_SAMPLE_STEP_M (never literally zero)
"""
from dataclasses import dataclass
from typing import Optional

from pacer.analysis.grade import GradeWindow

DEFAULT_GRADE_WINDOW_M = 100.0
DEFAULT_PACE_SMOOTHING_M = 300.0
DEFAULT_SAMPLE_STEP_M = 50.0
MIN_SAMPLE_STEP_M = 1.0


@dataclass(frozen=True)
class SmoothingConfig:
    grade_window: GradeWindow = GradeWindow(DEFAULT_GRADE_WINDOW_M)
    pace_smoothing: GradeWindow = GradeWindow(DEFAULT_PACE_SMOOTHING_M)
    sample_step_m: float = DEFAULT_SAMPLE_STEP_M

    @classmethod
    def resolve(
        cls,
        grade_window_m: Optional[float] = None,
        pace_smoothing_m: Optional[float] = None,
        sample_step_m: Optional[float] = None,
        defaults: Optional["SmoothingConfig"] = None,
    ) -> "SmoothingConfig":
        """
        Build a config from stored numbers; None means "use ``defaults``".

        Sample steps below MIN_SAMPLE_STEP_M (other than 0) are raised to it.
        """
        base = defaults or cls()

        grade_window = base.grade_window if grade_window_m is None else GradeWindow.from_setting(grade_window_m)
        pace_smoothing = base.pace_smoothing if pace_smoothing_m is None else GradeWindow.from_setting(pace_smoothing_m)

        if sample_step_m is None:
            step = base.sample_step_m
        elif sample_step_m == 0:
            step = DEFAULT_SAMPLE_STEP_M
        else:
            step = max(MIN_SAMPLE_STEP_M, sample_step_m)

        return cls(grade_window=grade_window, pace_smoothing=pace_smoothing, sample_step_m=step)

    @classmethod
    def from_settings(cls, settings) -> "SmoothingConfig":
        """System defaults from a Settings instance."""
        return cls.resolve(
            grade_window_m=settings.grade_window_m,
            pace_smoothing_m=settings.pace_smoothing_m,
            sample_step_m=settings.sample_step_m,
        )

    def for_course(self, course) -> "SmoothingConfig":
        """Apply a course's nullable overrides on top of this config."""
        return SmoothingConfig.resolve(
            grade_window_m=getattr(course, "grade_window_m", None),
            pace_smoothing_m=getattr(course, "pace_smoothing_m", None),
            sample_step_m=getattr(course, "sample_step_m", None),
            defaults=self,
        )
