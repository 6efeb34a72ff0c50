"""
App Flow Controller — the application state machine.

    initializing → profile-input → room-selection → loading-room → in-room
                                         ▲                           │ (settle delay)
                                         │ back                      ▼
                                         └──────── song-search ⇄ playing-song

Every failing call lands in ``error`` with a retry thunk that re-runs the
same operation with the same arguments.

This is the only component that talks to services (profiles, songs, scene,
video). Panels report intent through typed UI events; the controller
handles them, awaits whatever it has to, then moves to the next state and
shows that state's panel. Every transition hides all main panels first.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Coroutine, Optional

from .config import (
    KEYBOARD_DISTANCE,
    KEYBOARD_HEIGHT_OFFSET,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    OVERLAY_DISTANCE,
    OVERLAY_HEIGHT_OFFSET,
    PANEL_DISTANCE,
    PANEL_HEIGHT_OFFSET,
    ROOM_SETTLE_DELAY,
    SEARCH_MAX_LENGTH,
)
from .errors import ServiceError, UnrecoverableError, ValidationError
from .geometry import horizontal_forward
from .input_router import FrameInput, InputRouter
from .log import get_logger
from .models import AppState, Song
from .panels import PanelRegistry
from .profile_service import ProfileService
from .scene import SceneManager
from .song_catalog import SongCatalog
from .ui import (
    BackPressed,
    DismissPressed,
    ErrorDisplay,
    KeyboardDone,
    KeyboardTextChanged,
    LoadingIndicator,
    NowPlayingPanel,
    OpenKeyboard,
    PanelView,
    ProfileInputPanel,
    ProfileSubmitted,
    RetryPressed,
    RoomChosen,
    RoomSelectionPanel,
    SongChosen,
    SongSearchPanel,
    StopPressed,
    UIEvent,
    VirtualKeyboard,
)
from .video import VideoEvent, VideoPlayer, playing_after

logger = get_logger(__name__)

PendingAction = Callable[[], Awaitable[None]]


def validate_display_name(name: str) -> str:
    """Return the trimmed name, or raise ValidationError."""
    trimmed = name.strip()
    if len(trimmed) < NAME_MIN_LENGTH:
        raise ValidationError(f"Name must be at least {NAME_MIN_LENGTH} characters")
    if len(trimmed) > NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be at most {NAME_MAX_LENGTH} characters")
    return trimmed


class AppFlowController:
    def __init__(
        self,
        registry: PanelRegistry,
        router: InputRouter,
        scene: SceneManager,
        video: VideoPlayer,
        profiles: ProfileService,
        catalog: SongCatalog,
        settle_delay: float = ROOM_SETTLE_DELAY,
    ) -> None:
        self.registry = registry
        self.router = router
        self.scene = scene
        self.video = video
        self.profiles = profiles
        self.catalog = catalog
        self.settle_delay = settle_delay

        self.state = AppState.INITIALIZING
        self.is_playing = False
        self.current_song: Optional[Song] = None
        self.keyboard_target: Optional[str] = None
        self.pending_action: Optional[PendingAction] = None
        self.blocked = False  # set once an unrecoverable error is up
        self._tasks: set[asyncio.Task] = set()

        emit = self.handle_event
        self.profile_panel = ProfileInputPanel(registry, emit)
        self.room_panel = RoomSelectionPanel(registry, emit)
        self.song_panel = SongSearchPanel(registry, emit)
        self.now_playing = NowPlayingPanel(registry, emit)
        self.keyboard = VirtualKeyboard(registry, emit)
        self.loading = LoadingIndicator(registry, emit)
        self.error_display = ErrorDisplay(registry, emit)

        self.video.set_listener(self.on_video_event)
        logger.info("Flow controller initialized")

    @property
    def views(self) -> dict[str, PanelView]:
        return {
            view.PANEL_ID: view
            for view in (
                self.profile_panel,
                self.room_panel,
                self.song_panel,
                self.now_playing,
                self.keyboard,
                self.loading,
                self.error_display,
            )
        }

    # ═══════════════════════════════════════════════════════════════════
    #  TASKS
    # ═══════════════════════════════════════════════════════════════════

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Flow task failed", exc_info=task.exception())

    async def idle(self) -> None:
        """Wait until every flow task (including ones they spawn) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ═══════════════════════════════════════════════════════════════════
    #  EVENTS
    # ═══════════════════════════════════════════════════════════════════

    def handle_event(self, event: UIEvent) -> None:
        logger.debug("UI event: %s", event)
        if isinstance(event, OpenKeyboard):
            self.open_keyboard(event.target)
        elif isinstance(event, ProfileSubmitted):
            self.submit_profile(event.name)
        elif isinstance(event, RoomChosen):
            self._spawn(self.select_room(event.theme))
        elif isinstance(event, SongChosen):
            self._spawn(self.select_song(event.song))
        elif isinstance(event, StopPressed):
            self._spawn(self.stop_song())
        elif isinstance(event, BackPressed):
            self._spawn(self.back_to_room_selection())
        elif isinstance(event, KeyboardTextChanged):
            self.on_keyboard_text(event.text)
        elif isinstance(event, KeyboardDone):
            self.on_keyboard_done(event.text)
        elif isinstance(event, RetryPressed):
            self._spawn(self.retry())
        elif isinstance(event, DismissPressed):
            self.dismiss()
        else:
            logger.warning("Unhandled UI event: %r", event)

    def on_video_event(self, event: VideoEvent, detail: Optional[str] = None) -> None:
        self.is_playing = playing_after(event, self.is_playing)
        logger.info("Video %s (playing=%s)", event.value, self.is_playing)

        if event == VideoEvent.ERROR and self.state == AppState.PLAYING_SONG and self.current_song:
            song = self.current_song
            message = f"Video error: {detail}" if detail else "Video playback failed"
            self.show_error(message, lambda: self.select_song(song))

    # ═══════════════════════════════════════════════════════════════════
    #  STATE + DISPLAY HELPERS
    # ═══════════════════════════════════════════════════════════════════

    def _set_state(self, state: AppState) -> None:
        if self.blocked:
            logger.debug("Blocked, ignoring transition to %s", state.value)
            return
        if state != self.state:
            logger.info("State: %s → %s", self.state.value, state.value)
        self.state = state

    def _place(self, panel_id: str, distance: float, height_offset: float) -> None:
        camera = self.scene.camera
        self.registry.position_in_front(
            panel_id, camera.position, horizontal_forward(camera), distance, height_offset
        )

    def _show_panel(self, view: PanelView) -> None:
        if self.blocked:
            return
        self._place(view.PANEL_ID, PANEL_DISTANCE, PANEL_HEIGHT_OFFSET)
        view.show()

    def _show_loading(self, message: str) -> None:
        if self.blocked:
            return
        self._place(self.loading.PANEL_ID, OVERLAY_DISTANCE, OVERLAY_HEIGHT_OFFSET)
        self.loading.show(message)

    def _hide_loading(self) -> None:
        self.loading.hide()

    def show_error(
        self,
        message: str,
        retry: Optional[PendingAction] = None,
        recoverable: bool = True,
    ) -> None:
        if self.blocked:
            logger.warning("Error after unrecoverable error, not shown: %s", message)
            return
        self.pending_action = retry
        self._set_state(AppState.ERROR)
        self.registry.hide_all()
        self._place(self.error_display.PANEL_ID, OVERLAY_DISTANCE, OVERLAY_HEIGHT_OFFSET)
        self.error_display.show(message, recoverable=recoverable)

    def show_unrecoverable(self, error: UnrecoverableError) -> None:
        """
        Blocking error (e.g. no WebXR): no retry, no dismiss. Tasks still in
        flight finish without changing state or showing panels.
        """
        logger.error("Unrecoverable: %s", error)
        self._hide_loading()
        self.keyboard.hide()
        self.show_error(str(error), None, recoverable=False)
        self.blocked = True

    async def _guarded(
        self,
        loading_message: str,
        action: Callable[[], Awaitable[Any]],
        retry: PendingAction,
        fallback_message: str,
    ) -> tuple[bool, Any]:
        """
        Run *action* behind the loading overlay.

        On failure the overlay is swapped for the error display and *retry*
        becomes the pending action. Returns ``(ok, result)``.
        """
        self._show_loading(loading_message)
        try:
            result = await action()
        except ServiceError as e:
            self._hide_loading()
            logger.error("%s: %s", fallback_message, e)
            self.show_error(str(e) or fallback_message, retry)
            return False, None
        except Exception:
            self._hide_loading()
            logger.exception(fallback_message)
            self.show_error(fallback_message, retry)
            return False, None
        self._hide_loading()
        return True, result

    # ═══════════════════════════════════════════════════════════════════
    #  SCREENS
    # ═══════════════════════════════════════════════════════════════════

    async def start(self) -> None:
        logger.info("Starting application flow")
        self._set_state(AppState.INITIALIZING)
        self._show_loading("Loading profile...")
        try:
            profile = await self.profiles.load_cached_profile()
        except Exception:
            logger.exception("Profile lookup failed during startup")
            profile = None
        self._hide_loading()

        if profile is not None:
            logger.info("Found existing profile: %s", profile.display_name)
            self.show_room_selection()
        else:
            self.show_profile_input()

    def show_profile_input(self) -> None:
        self._set_state(AppState.PROFILE_INPUT)
        self.registry.hide_all()
        self.profile_panel.reset()
        self._show_panel(self.profile_panel)

    def show_room_selection(self) -> None:
        self._set_state(AppState.ROOM_SELECTION)
        self.registry.hide_all()
        self._show_panel(self.room_panel)

    async def show_song_search(self) -> None:
        self._set_state(AppState.SONG_SEARCH)
        self.registry.hide_all()
        theme = self.scene.current_theme
        ok, songs = await self._guarded(
            "Loading songs...",
            lambda: self.catalog.list_songs(theme),
            self.show_song_search,
            "Failed to load songs",
        )
        if not ok:
            return
        self.song_panel.set_search_query("")
        self.song_panel.set_songs(songs)
        self._show_panel(self.song_panel)

    async def _song_search_after_settle(self) -> None:
        await asyncio.sleep(self.settle_delay)
        if self.state == AppState.IN_ROOM:
            await self.show_song_search()

    def _enter_room(self) -> None:
        self._set_state(AppState.IN_ROOM)
        self.registry.hide_all()
        self._spawn(self._song_search_after_settle())

    # ═══════════════════════════════════════════════════════════════════
    #  ACTIONS
    # ═══════════════════════════════════════════════════════════════════

    def submit_profile(self, name: str) -> Optional[asyncio.Task]:
        """Validate locally; only a valid name reaches the server."""
        try:
            trimmed = validate_display_name(name)
        except ValidationError as e:
            logger.info("Rejected display name %r: %s", name, e)
            self.profile_panel.show_error(str(e))
            return None
        return self._spawn(self.create_profile(trimmed))

    async def create_profile(self, name: str) -> None:
        ok, _ = await self._guarded(
            "Creating profile...",
            lambda: self.profiles.create_profile(name),
            lambda: self.create_profile(name),
            "Failed to create profile",
        )
        if ok:
            self.show_room_selection()

    async def select_room(self, theme: str) -> None:
        logger.info("Room selected: %s", theme)
        self._set_state(AppState.LOADING_ROOM)
        self.registry.hide_all()
        ok, _ = await self._guarded(
            "Loading room...",
            lambda: self.scene.load_room(theme),
            lambda: self.select_room(theme),
            "Failed to load room",
        )
        if ok:
            self._enter_room()

    async def search_songs(self, query: str) -> None:
        query = query.strip()
        self.song_panel.set_search_query(query)
        theme = self.scene.current_theme

        def fetch():
            # empty query lists the whole room
            if query:
                return self.catalog.search(query)
            return self.catalog.list_songs(theme)

        ok, songs = await self._guarded(
            "Searching...",
            fetch,
            lambda: self.search_songs(query),
            "Failed to search songs",
        )
        if not ok:
            return
        self._set_state(AppState.SONG_SEARCH)
        self.registry.hide_all()
        self.song_panel.set_songs(songs)
        self._show_panel(self.song_panel)

    async def select_song(self, song: Song) -> None:
        logger.info("Song selected: %s (%s)", song.label, song.youtube_id)
        self.current_song = song
        ok, _ = await self._guarded(
            "Loading video...",
            lambda: self.video.load(song.youtube_id),
            lambda: self.select_song(song),
            "Failed to load video",
        )
        if not ok:
            return
        self._set_state(AppState.PLAYING_SONG)
        self.registry.hide_all()
        self.now_playing.set_song(song)
        self._show_panel(self.now_playing)

    async def _stop_video(self) -> None:
        try:
            await self.video.stop()
        except ServiceError as e:
            logger.warning("Video stop failed: %s", e)
        self.is_playing = False
        self.current_song = None
        self.now_playing.set_song(None)

    async def stop_song(self) -> None:
        logger.info("Stopping song")
        await self._stop_video()
        self._enter_room()

    async def back_to_room_selection(self) -> None:
        logger.info("Returning to room selection")
        await self._stop_video()
        try:
            await self.scene.unload_room()
        except ServiceError as e:
            logger.warning("Room unload failed: %s", e)
        self.show_room_selection()

    async def retry(self) -> None:
        if self.blocked:
            return
        action, self.pending_action = self.pending_action, None
        self.error_display.hide()
        if action is None:
            logger.warning("Retry pressed with nothing to retry")
            self.dismiss()
            return
        await action()

    def dismiss(self) -> None:
        if self.blocked:
            return
        self.pending_action = None
        self.error_display.hide()
        if not self.profiles.has_profile():
            self.show_profile_input()
        elif self.scene.current_room is not None:
            self._spawn(self.show_song_search())
        else:
            self.show_room_selection()

    # ═══════════════════════════════════════════════════════════════════
    #  KEYBOARD
    # ═══════════════════════════════════════════════════════════════════

    def open_keyboard(self, target: str) -> None:
        if self.blocked:
            return
        self.keyboard_target = target
        if target == "profile":
            self.keyboard.set_max_length(NAME_MAX_LENGTH)
            self.keyboard.set_text(self.profile_panel.display_name)
        else:
            self.keyboard.set_max_length(SEARCH_MAX_LENGTH)
            self.keyboard.set_text("")
        self._place(self.keyboard.PANEL_ID, KEYBOARD_DISTANCE, KEYBOARD_HEIGHT_OFFSET)
        self.keyboard.show()

    def on_keyboard_text(self, text: str) -> None:
        if self.keyboard_target == "profile":
            self.profile_panel.set_display_name(text)
        elif self.keyboard_target == "song-search":
            self.song_panel.set_search_query(text)

    def on_keyboard_done(self, text: str) -> None:
        target, self.keyboard_target = self.keyboard_target, None
        if target == "profile":
            self.profile_panel.set_display_name(text)
        elif target == "song-search":
            self._spawn(self.search_songs(text))

    # ═══════════════════════════════════════════════════════════════════
    #  FRAME
    # ═══════════════════════════════════════════════════════════════════

    def update(self, delta: float, frame: FrameInput) -> None:
        self.loading.update(delta)
        self.scene.update_camera(frame.head)

        if self.loading.is_visible:
            self.router.observe(frame)
            return

        edges = self.router.route(frame, self.scene.camera)
        for key in frame.keys:
            self.profile_panel.type_key(key)

        mic = self.scene.microphone
        if mic is not None and frame.xr_active and self.state in (AppState.IN_ROOM, AppState.PLAYING_SONG):
            mic.update(frame.sources, edges)
