# Application Stats Package
from .metrics_calculator import EnrichedStats, MetricsCalculator
from .service import ReviewStatsService

__all__ = ["MetricsCalculator", "EnrichedStats", "ReviewStatsService"]
