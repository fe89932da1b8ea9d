# Infrastructure Adapters Package
from .review_log import YamlReviewLogRepository, parse_entry

__all__ = ["YamlReviewLogRepository", "parse_entry"]
