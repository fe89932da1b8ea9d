# Domain Scheduling Package
from .models import (
    BinaryGrade,
    CardStage,
    CardState,
    CardTimeline,
    CurvePoint,
    GradeMetrics,
    GradeResult,
    Rating,
    ReviewLogEntry,
    Snapshot,
    StepOutcome,
)
from .ports import ReviewLogRepository

__all__ = [
    "BinaryGrade",
    "CardStage",
    "CardState",
    "CardTimeline",
    "CurvePoint",
    "GradeMetrics",
    "GradeResult",
    "Rating",
    "ReviewLogEntry",
    "ReviewLogRepository",
    "Snapshot",
    "StepOutcome",
]
