# track_monitor/services/track_ingest/__init__.py
"""
Track Ingest — сервис приёма GPS-фиксов машин.

Обеспечивает:
- Приём NMEA-фиксов (POST /track)
- SOS и статусы OK (POST /sos, POST /ok)
- Рассылку событий наблюдателям (WS /ws) и в Redis Pub/Sub
"""
