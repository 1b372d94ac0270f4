"""Flood-risk check for a ward: expected rainfall against drain capacity.

The result is shown next to the ward's stored ``risk_level`` label. The two are
separate signals and are not reconciled with each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RiskAssessment:
    # None means unknown: at least one input is missing.
    at_risk: Optional[bool]
    message: str


def _mm(value: float) -> str:
    return f"{value:g}mm"


def evaluate_risk(avg_rainfall_mm: Optional[float], drain_capacity_mm: Optional[float]) -> RiskAssessment:
    if avg_rainfall_mm is None or drain_capacity_mm is None:
        return RiskAssessment(
            at_risk=None,
            message="Risk unknown: rainfall or drain capacity data is missing.",
        )

    if avg_rainfall_mm > drain_capacity_mm:
        return RiskAssessment(
            at_risk=True,
            message=(
                f"Rainfall ({_mm(avg_rainfall_mm)}) exceeds drain capacity "
                f"({_mm(drain_capacity_mm)}). Consider alternate routes."
            ),
        )

    return RiskAssessment(
        at_risk=False,
        message=(
            f"Drain capacity ({_mm(drain_capacity_mm)}) can handle expected rainfall "
            f"({_mm(avg_rainfall_mm)})."
        ),
    )


__all__ = ["RiskAssessment", "evaluate_risk"]
