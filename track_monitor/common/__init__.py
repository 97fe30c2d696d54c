"""
Общие утилиты, константы и логгер.
"""

from track_monitor.common.logger import get_logger, log_info, log_error, log_warning, log_debug, setup_logging
from track_monitor.common.constants import TypeMsg, Direction, EventType

__all__ = [
    "get_logger",
    "log_info",
    "log_error",
    "log_warning",
    "log_debug",
    "setup_logging",
    "TypeMsg",
    "Direction",
    "EventType",
]
