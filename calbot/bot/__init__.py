"""
Telegram-бот на aiogram.
"""
