"""
Pacing strategies: how effort is distributed along the course on top of
the terrain adjustment.

A strategy returns a multiplier for a position on the course. The time
engine folds it into each sample's terrain factor before normalization, so
any strategy still finishes on the plan's target time.

Only the flat strategy is implemented. Plans may carry
``pacing_strategy = "linear"`` with ``pacing_linear_percent``; no
computation for it exists yet, so such plans are paced flat.
"""
import logging

from pacer.models.enums import PacingStrategyName

logger = logging.getLogger(__name__)


class PacingStrategy:
    name: str = ""

    def position_factor(self, distance: float, total_distance: float) -> float:
        raise NotImplementedError


class FlatStrategy(PacingStrategy):
    """Even effort from start to finish."""

    name = PacingStrategyName.FLAT.value

    def position_factor(self, distance: float, total_distance: float) -> float:
        return 1.0


FLAT = FlatStrategy()


def get_pacing_strategy(plan) -> PacingStrategy:
    """Strategy for a plan; anything not implemented resolves to flat."""
    requested = getattr(plan, "pacing_strategy", None) or PacingStrategyName.FLAT
    if requested != PacingStrategyName.FLAT:
        logger.warning(
            "Pacing strategy %r is not implemented; using flat pacing",
            getattr(requested, "value", requested),
        )
    return FLAT
