"""
Convenience launcher so the bot can be started with ``python main.py``.
"""
from assist.main import run_bot

if __name__ == "__main__":
    run_bot()
