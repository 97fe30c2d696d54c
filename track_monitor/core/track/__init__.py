"""
Трасса: загрузка кольца точек и привязка координат.
"""

from track_monitor.core.track.path import NearestPoint, TrackPath, TrackPoint

__all__ = [
    "NearestPoint",
    "TrackPath",
    "TrackPoint",
]
