"""
Track Monitor — позиции машин на замкнутой трассе в реальном времени.
"""

__version__ = "1.0.0"
