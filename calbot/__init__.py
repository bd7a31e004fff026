"""
calbot - календарный Telegram-бот.
"""
