"""Progress reporting for extraction sessions."""

from dataclasses import dataclass, field
from typing import List, Optional

from .math_utils import clamp01


@dataclass
class BodyResult:
    """Outcome of one body in a session."""

    body: str
    status: str  # "saved", "skipped" or "failed"
    paths: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class ProgressReport:
    """Snapshot of a session for a host UI."""

    state: str
    message: str
    fraction_complete: float
    complete: bool
    elapsed_seconds: float
    current_body: Optional[str]
    bodies_total: int
    bodies_done: int
    results: List[BodyResult] = field(default_factory=list)

    @property
    def percent(self) -> int:
        return int(self.fraction_complete * 100)


def fraction_complete(
    body_index: int, row: int, column: int, width: int, resolution: int, body_count: int
) -> float:
    """
    Overall completion of a session in [0, 1].

    Completed bodies count as whole units; the body being sampled
    contributes the fraction of cells its cursor has passed.
    """
    if body_count <= 0 or resolution <= 0:
        return 1.0
    map_fraction = (row * width + column) / resolution
    return clamp01((body_index + map_fraction) / body_count)
