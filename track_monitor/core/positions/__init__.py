"""
Движок позиций: состояние машин, направление, поиск машины позади.
"""

from track_monitor.core.positions.engine import PositionUpdate, TrackPositionEngine, VehicleState

__all__ = [
    "PositionUpdate",
    "TrackPositionEngine",
    "VehicleState",
]
