"""
Парсер строк позиционирования GPS-модема.
"""

from track_monitor.core.nmea.parser import Fix, parse_decimal, parse_nmea, to_decimal

__all__ = [
    "Fix",
    "parse_decimal",
    "parse_nmea",
    "to_decimal",
]
