#!/usr/bin/env python3
"""
Entrypoint для Track Ingest.

Запуск:
    python entrypoint_track_ingest.py

Порт по умолчанию: 3000
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from track_monitor.config import settings


def main() -> None:
    """Запустить Track Ingest."""
    uvicorn.run(
        "track_monitor.services.track_ingest.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
