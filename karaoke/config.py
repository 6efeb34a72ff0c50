"""
Configuration constants for the KaraokeVerse client.
"""

import math
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# REST API
# ---------------------------------------------------------------------------
API_BASE_URL = os.environ.get("KARAOKE_API_URL", "http://localhost:3001/api")
API_TIMEOUT = float(os.environ.get("KARAOKE_API_TIMEOUT", "10"))

# ---------------------------------------------------------------------------
# Local storage (cached profile id only, never the full record)
# ---------------------------------------------------------------------------
PROFILE_STORAGE_KEY = "karaokeverse_profile_id"
STORAGE_PATH = os.environ.get(
    "KARAOKE_STORAGE_PATH",
    str(Path.home() / ".karaokeverse" / "storage.json"),
)

# ---------------------------------------------------------------------------
# Input limits
# ---------------------------------------------------------------------------
NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 20
SEARCH_MAX_LENGTH = 50

# ---------------------------------------------------------------------------
# Panel placement (metres)
# ---------------------------------------------------------------------------
PANEL_DISTANCE = 1.8
PANEL_HEIGHT_OFFSET = -0.1
DEFAULT_PANEL_WIDTH = 1.4
DEFAULT_PANEL_HEIGHT = 0.8

# Loading / error overlays sit a little closer and higher than panels
OVERLAY_DISTANCE = 1.5
OVERLAY_HEIGHT_OFFSET = 0.1

# Virtual keyboard opens below and in front of the panel it types into
KEYBOARD_DISTANCE = 1.5
KEYBOARD_HEIGHT_OFFSET = -0.45

# Buttons float slightly in front of their panel background
BUTTON_Z_OFFSET = 0.01

# Overlay message length before truncation ("..." included)
ERROR_MESSAGE_MAX = 50

# Loading spinner speed (radians per second)
SPINNER_SPEED = 2.0

# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------
# Desktop mouse rays are approximated with a fixed field of view
DESKTOP_FOV = math.pi / 4

# Pointer mode reported by tracked controllers
TRACKED_POINTER = "tracked-pointer"

# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------
EYE_HEIGHT = 1.6
MIC_GRAB_DISTANCE = 0.3

# Delay between entering a room and opening the song list (seconds)
ROOM_SETTLE_DELAY = 0.5

# ---------------------------------------------------------------------------
# Browser bridge
# ---------------------------------------------------------------------------
BRIDGE_HOST = os.environ.get("KARAOKE_BRIDGE_HOST", "0.0.0.0")
BRIDGE_PORT = int(os.environ.get("KARAOKE_BRIDGE_PORT", "8766"))
BRIDGE_ACK_TIMEOUT = 15.0  # room setup can take a while on standalone headsets
TARGET_FPS = 60
