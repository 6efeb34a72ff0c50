"""
UI panels — the concrete panels of the karaoke flow.

Each panel registers itself (and its buttons) with the PanelRegistry and
reports user intent by emitting typed events into a single ``emit``
callable, which the flow controller owns. Panels never call services.

Layout constants are in metres, panel-local, origin at the panel centre.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .config import (
    ERROR_MESSAGE_MAX,
    NAME_MAX_LENGTH,
    SEARCH_MAX_LENGTH,
    SPINNER_SPEED,
)
from .log import get_logger
from .models import ROOM_THEMES, Button, Panel, Song
from .panels import PanelRegistry

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  EVENTS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OpenKeyboard:
    target: str  # "profile" | "song-search"


@dataclass(frozen=True)
class ProfileSubmitted:
    name: str


@dataclass(frozen=True)
class RoomChosen:
    theme: str


@dataclass(frozen=True)
class SongChosen:
    song: Song


@dataclass(frozen=True)
class StopPressed:
    pass


@dataclass(frozen=True)
class BackPressed:
    pass


@dataclass(frozen=True)
class KeyboardTextChanged:
    text: str


@dataclass(frozen=True)
class KeyboardDone:
    text: str


@dataclass(frozen=True)
class RetryPressed:
    pass


@dataclass(frozen=True)
class DismissPressed:
    pass


UIEvent = Union[
    OpenKeyboard,
    ProfileSubmitted,
    RoomChosen,
    SongChosen,
    StopPressed,
    BackPressed,
    KeyboardTextChanged,
    KeyboardDone,
    RetryPressed,
    DismissPressed,
]
Emit = Callable[[UIEvent], None]


# ═══════════════════════════════════════════════════════════════════════
#  BASE
# ═══════════════════════════════════════════════════════════════════════

class PanelView:
    """Common plumbing: one registry panel plus helpers to add buttons."""

    PANEL_ID = ""
    WIDTH = 1.4
    HEIGHT = 0.8
    OVERLAY = False

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        self.registry = registry
        self.emit = emit
        self.panel: Panel = registry.create_panel(
            self.PANEL_ID, width=self.WIDTH, height=self.HEIGHT, overlay=self.OVERLAY
        )

    def _button(
        self,
        button_id: str,
        label: str,
        x: float,
        y: float,
        width: float,
        height: float,
        on_activate: Callable[[], None],
    ) -> Button:
        button = Button(button_id, label, x, y, width, height, on_activate)
        self.registry.add_button(self.panel, button)
        return button

    def show(self) -> None:
        self.registry.show(self.PANEL_ID)

    def hide(self) -> None:
        self.registry.hide(self.PANEL_ID)

    @property
    def is_visible(self) -> bool:
        return self.panel.visible

    def describe(self) -> dict:
        """Text content for the renderer, on top of the registry's geometry."""
        return {}


# ═══════════════════════════════════════════════════════════════════════
#  PROFILE INPUT
# ═══════════════════════════════════════════════════════════════════════

class ProfileInputPanel(PanelView):
    PANEL_ID = "profile-input"
    WIDTH = 1.4
    HEIGHT = 0.8

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        self.display_name = ""
        self.error_message = ""
        self._button("name-input", "Enter name...", 0.0, -0.05, 1.0, 0.12,
                     lambda: self.emit(OpenKeyboard("profile")))
        self._button("submit-name", "Continue", 0.0, -0.30, 0.4, 0.1, self.submit)

    def submit(self) -> None:
        self.emit(ProfileSubmitted(self.display_name))

    def set_display_name(self, name: str) -> None:
        self.display_name = name
        self.error_message = ""

    def show_error(self, message: str) -> None:
        self.error_message = message

    def reset(self) -> None:
        self.display_name = ""
        self.error_message = ""

    def type_key(self, key: str) -> None:
        """Physical keyboard input while the panel is up (desktop testing)."""
        if not self.is_visible:
            return
        if key == "Enter":
            self.submit()
        elif key == "Backspace":
            if self.display_name:
                self.set_display_name(self.display_name[:-1])
        elif len(key) == 1 and len(self.display_name) < NAME_MAX_LENGTH:
            self.set_display_name(self.display_name + key)

    def describe(self) -> dict:
        return {
            "title": "Enter Your Name",
            "subtitle": "(3-20 characters)",
            "displayName": self.display_name,
            "error": self.error_message,
        }


# ═══════════════════════════════════════════════════════════════════════
#  ROOM SELECTION
# ═══════════════════════════════════════════════════════════════════════

class RoomSelectionPanel(PanelView):
    PANEL_ID = "room-selection"
    WIDTH = 1.6
    HEIGHT = 1.0

    BUTTON_WIDTH = 0.7
    BUTTON_HEIGHT = 0.12
    BUTTON_SPACING = 0.14
    TITLE_HEIGHT = 0.1

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        start_y = self.HEIGHT / 2 - self.TITLE_HEIGHT - self.BUTTON_SPACING
        for index, (theme, config) in enumerate(ROOM_THEMES.items()):
            self._button(
                f"room-{theme}",
                config.display_name,
                0.0,
                start_y - index * self.BUTTON_SPACING,
                self.BUTTON_WIDTH,
                self.BUTTON_HEIGHT,
                lambda theme=theme: self.emit(RoomChosen(theme)),
            )

    def describe(self) -> dict:
        return {"title": "Select a Room"}


# ═══════════════════════════════════════════════════════════════════════
#  SONG SEARCH
# ═══════════════════════════════════════════════════════════════════════

class SongSearchPanel(PanelView):
    PANEL_ID = "song-search"
    WIDTH = 1.6
    HEIGHT = 1.2

    SONG_WIDTH = 1.4
    SONG_HEIGHT = 0.1
    SONG_SPACING = 0.12
    MAX_VISIBLE_SONGS = 6

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        self.songs: list[Song] = []
        self.search_query = ""
        self._song_button_ids: list[str] = []

        self._button("search-input", "Search...", 0.0, self.HEIGHT / 2 - 0.18, 1.2, 0.1,
                     lambda: self.emit(OpenKeyboard("song-search")))
        control_y = -self.HEIGHT / 2 + 0.08
        self._button("stop", "Stop", -0.2, control_y, 0.3, 0.08, lambda: self.emit(StopPressed()))
        self._button("back", "Back", 0.2, control_y, 0.3, 0.08, lambda: self.emit(BackPressed()))

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_songs(self, songs: list[Song]) -> None:
        """Replace the song list; only the first few get buttons."""
        self.songs = list(songs)
        self.registry.remove_buttons(self.panel, self._song_button_ids)
        self._song_button_ids = []

        start_y = self.HEIGHT / 2 - 0.32
        for index, song in enumerate(self.songs[: self.MAX_VISIBLE_SONGS]):
            button = self._button(
                f"song-{song.id}",
                song.label,
                0.0,
                start_y - index * self.SONG_SPACING,
                self.SONG_WIDTH,
                self.SONG_HEIGHT,
                lambda song=song: self.emit(SongChosen(song)),
            )
            self._song_button_ids.append(button.id)
        logger.info("Song list updated: %d songs", len(self.songs))

    def describe(self) -> dict:
        return {
            "title": "Song Search",
            "query": self.search_query or "Tap to search...",
            "total": len(self.songs),
        }


# ═══════════════════════════════════════════════════════════════════════
#  NOW PLAYING
# ═══════════════════════════════════════════════════════════════════════

class NowPlayingPanel(PanelView):
    PANEL_ID = "now-playing"
    WIDTH = 1.0
    HEIGHT = 0.4

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        self.song: Optional[Song] = None
        self._button("stop-song", "Stop", -0.2, -0.1, 0.3, 0.08, lambda: self.emit(StopPressed()))
        self._button("leave-room", "Back", 0.2, -0.1, 0.3, 0.08, lambda: self.emit(BackPressed()))

    def set_song(self, song: Optional[Song]) -> None:
        self.song = song

    def describe(self) -> dict:
        return {"title": self.song.label if self.song else ""}


# ═══════════════════════════════════════════════════════════════════════
#  VIRTUAL KEYBOARD
# ═══════════════════════════════════════════════════════════════════════

BACKSPACE = "⌫"

KEYBOARD_ROWS = [
    ["1", "2", "3", "4", "5", "6", "7", "8", "9", "0"],
    ["Q", "W", "E", "R", "T", "Y", "U", "I", "O", "P"],
    ["A", "S", "D", "F", "G", "H", "J", "K", "L"],
    ["Z", "X", "C", "V", "B", "N", "M", BACKSPACE],
    ["Space", "Done"],
]

KEY_WIDTHS = {"Space": 0.6, "Done": 0.3, BACKSPACE: 0.18}


class VirtualKeyboard(PanelView):
    PANEL_ID = "keyboard"
    WIDTH = 1.8
    HEIGHT = 0.8

    KEY_WIDTH = 0.12
    KEY_HEIGHT = 0.1
    KEY_SPACING = 0.02

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        self.text = ""
        self.max_length = SEARCH_MAX_LENGTH

        row_y = self.HEIGHT / 2 - 0.1
        for row in KEYBOARD_ROWS:
            self._create_row(row, row_y)
            row_y -= self.KEY_HEIGHT + self.KEY_SPACING

    def _create_row(self, keys: list[str], y: float) -> None:
        widths = [KEY_WIDTHS.get(k, self.KEY_WIDTH) for k in keys]
        total = sum(widths) + self.KEY_SPACING * (len(keys) - 1)
        x = -total / 2
        for key, width in zip(keys, widths):
            self._button(f"key-{key}", key, x + width / 2, y, width, self.KEY_HEIGHT,
                         lambda key=key: self.press_key(key))
            x += width + self.KEY_SPACING

    def set_max_length(self, length: int) -> None:
        self.max_length = length

    def set_text(self, text: str) -> None:
        self.text = text[: self.max_length]

    def press_key(self, key: str) -> None:
        if key == BACKSPACE:
            if self.text:
                self.text = self.text[:-1]
                self.emit(KeyboardTextChanged(self.text))
        elif key == "Space":
            if len(self.text) < self.max_length:
                self.text += " "
                self.emit(KeyboardTextChanged(self.text))
        elif key == "Done":
            logger.info("Keyboard done: %r", self.text)
            self.hide()
            self.emit(KeyboardDone(self.text))
        elif len(self.text) < self.max_length:
            self.text += key
            self.emit(KeyboardTextChanged(self.text))

    def describe(self) -> dict:
        return {"text": self.text, "maxLength": self.max_length}


# ═══════════════════════════════════════════════════════════════════════
#  OVERLAYS
# ═══════════════════════════════════════════════════════════════════════

class LoadingIndicator(PanelView):
    PANEL_ID = "loading"
    WIDTH = 0.6
    HEIGHT = 0.3
    OVERLAY = True

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        self.message = ""
        self.spinner_angle = 0.0

    def show(self, message: str = "Loading...") -> None:
        self.message = message
        super().show()

    def update(self, delta: float) -> None:
        if self.is_visible:
            self.spinner_angle -= SPINNER_SPEED * delta

    def describe(self) -> dict:
        return {"message": self.message, "spinner": round(self.spinner_angle, 3)}


def truncate_message(message: str, limit: int = ERROR_MESSAGE_MAX) -> str:
    if len(message) > limit:
        return message[: limit - 3] + "..."
    return message


class ErrorDisplay(PanelView):
    PANEL_ID = "error"
    WIDTH = 0.8
    HEIGHT = 0.4
    OVERLAY = True

    def __init__(self, registry: PanelRegistry, emit: Emit) -> None:
        super().__init__(registry, emit)
        self.message = ""
        self.recoverable = True
        button_y = -self.HEIGHT / 2 + 0.08
        self.retry_button = self._button("retry", "Retry", -0.15, button_y, 0.2, 0.06,
                                         lambda: self.emit(RetryPressed()))
        self.dismiss_button = self._button("dismiss", "Dismiss", 0.15, button_y, 0.2, 0.06,
                                           lambda: self.emit(DismissPressed()))

    def show(self, message: str, recoverable: bool = True) -> None:
        """Show *message*; unrecoverable errors get no buttons at all."""
        self.message = truncate_message(message)
        self.recoverable = recoverable
        self.retry_button.enabled = recoverable
        self.dismiss_button.enabled = recoverable
        logger.info("Error shown: %s", message)
        super().show()

    def describe(self) -> dict:
        return {"title": "Error", "message": self.message, "recoverable": self.recoverable}
