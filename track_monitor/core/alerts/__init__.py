"""
SOS-диспетчер: рассылка тревог и предупреждение машины позади.
"""

from track_monitor.core.alerts.dispatcher import AlertDispatcher, AlertResult, WARNING_TEMPLATE

__all__ = [
    "AlertDispatcher",
    "AlertResult",
    "WARNING_TEMPLATE",
]
