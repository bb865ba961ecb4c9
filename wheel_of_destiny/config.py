"""
Single place for runtime configuration.
Every setting can be overridden with an environment variable of the same name.
"""
import os
from pathlib import Path

PACKAGE_DIR = Path(__file__).parent

# Heroku-style URLs use postgres://; SQLAlchemy 2.x expects postgresql://
_raw_url = os.environ.get("DATABASE_URL")
if _raw_url and _raw_url.startswith("postgres://"):
    DATABASE_URL = _raw_url.replace("postgres://", "postgresql://", 1)
elif _raw_url:
    DATABASE_URL = _raw_url
else:
    DATABASE_URL = f"sqlite:///{PACKAGE_DIR.parent / 'wheel.db'}"

PUZZLES_FILE = Path(os.environ.get("PUZZLES_FILE", str(PACKAGE_DIR / "data" / "puzzles.json")))

CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]

# Multiplier on the computer's thinking delay. 0 makes it answer immediately.
COMPUTER_THINKING_SCALE = float(os.environ.get("COMPUTER_THINKING_SCALE", "1.0"))
DEFAULT_COMPUTER_DIFFICULTY = os.environ.get("DEFAULT_COMPUTER_DIFFICULTY", "medium")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
HOST = os.environ.get("HOST", "127.0.0.1")
PORT = int(os.environ.get("PORT", "8000"))
