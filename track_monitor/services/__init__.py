"""
Сервисы: HTTP приём фиксов и realtime рассылка.
"""
