"""
Прикладной слой: конфигурация, модели, сервисы.
"""
