"""
Сервисы приложения.
"""
