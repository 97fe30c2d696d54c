"""
Pydantic-модели записей и ответов.
"""

from track_monitor.shared.models.common import (
    ErrorResponse,
    HealthStatus,
)
from track_monitor.shared.models.track import (
    PositionRecord,
    AlertRecord,
    StatusRecord,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthStatus",
    # Track
    "PositionRecord",
    "AlertRecord",
    "StatusRecord",
]
