"""
Запуск Telegram бота.
"""

from dotenv import load_dotenv

# Загружаем переменные окружения до импорта настроек
load_dotenv()


if __name__ == "__main__":
    from calbot.bot.main import run_bot

    print("=" * 50)
    print("  calbot - Telegram calendar bot")
    print("=" * 50)

    try:
        run_bot()
    except KeyboardInterrupt:
        print("\n[INFO] Shutting down...")
    finally:
        print("[INFO] Stopped")
