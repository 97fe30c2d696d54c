"""
Ядро: трасса, парсер NMEA, движок позиций, SOS-диспетчер.
"""
