"""
Configuration for the KaraokeVerse API.
"""

import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
DB_PATH = os.path.join(PROJECT_ROOT, "data", "karaoke.db")

DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

API_HOST = os.environ.get("KARAOKE_API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("KARAOKE_API_PORT", "3001"))

# Comma separated; "*" allows any origin
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("KARAOKE_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

DISPLAY_NAME_MIN = 3
DISPLAY_NAME_MAX = 20
