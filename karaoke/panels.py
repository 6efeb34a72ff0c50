"""
Panel Registry — owns the UI panels, their buttons and hover state.

Panels are independent containers. Nothing here enforces that only one is
visible; the flow controller does that by calling ``hide_all()`` before
every ``show()``. Overlay panels (loading, error) are skipped by
``hide_all()`` so they can sit on top of a hidden main panel.

Per-button state machine::

    idle ──hit──▶ hovered ──press edge──▶ pressed ──release edge──▶ hovered
      ▲              │                                                │
      └────miss──────┴────────────────────────miss────────────────────┘
"""

from __future__ import annotations

from typing import Iterable, Optional

from .config import DEFAULT_PANEL_HEIGHT, DEFAULT_PANEL_WIDTH
from .geometry import intersect_button, place_in_front
from .log import get_logger
from .models import AnchorPose, Button, ButtonState, Panel, Vec3

logger = get_logger(__name__)


class PanelRegistry:
    def __init__(self) -> None:
        self._panels: dict[str, Panel] = {}
        self._hovered: Optional[Button] = None

    # ── Panels ───────────────────────────────────────────────────────

    def create_panel(
        self,
        panel_id: str,
        anchor: Optional[AnchorPose] = None,
        width: float = DEFAULT_PANEL_WIDTH,
        height: float = DEFAULT_PANEL_HEIGHT,
        overlay: bool = False,
    ) -> Panel:
        """Register a new panel. Panels start hidden."""
        panel = Panel(
            id=panel_id,
            anchor=anchor or AnchorPose(),
            width=width,
            height=height,
            overlay=overlay,
        )
        self._panels[panel_id] = panel
        logger.debug("Panel created: %s", panel_id)
        return panel

    def get(self, panel_id: str) -> Optional[Panel]:
        return self._panels.get(panel_id)

    def add_button(self, panel: Panel, button: Button) -> None:
        panel.buttons.append(button)

    def remove_buttons(self, panel: Panel, button_ids: Iterable[str]) -> None:
        doomed = set(button_ids)
        if self._hovered is not None and self._hovered.id in doomed:
            self._hovered = None
        panel.buttons = [b for b in panel.buttons if b.id not in doomed]

    # ── Visibility ───────────────────────────────────────────────────

    def show(self, panel_id: str) -> None:
        panel = self.get(panel_id)
        if panel is None:
            logger.warning("show() on unknown panel: %s", panel_id)
            return
        panel.visible = True
        logger.debug("Panel shown: %s", panel_id)

    def hide(self, panel_id: str) -> None:
        panel = self.get(panel_id)
        if panel is None or not panel.visible:
            return
        panel.visible = False
        if self._hovered is not None and any(b is self._hovered for b in panel.buttons):
            self._set_state(self._hovered, ButtonState.IDLE)
            self._hovered = None
        logger.debug("Panel hidden: %s", panel_id)

    def hide_all(self) -> None:
        """Hide every non-overlay panel. Safe with nothing visible."""
        for panel in self._panels.values():
            if not panel.overlay:
                self.hide(panel.id)

    def is_visible(self, panel_id: str) -> bool:
        panel = self.get(panel_id)
        return panel is not None and panel.visible

    def visible_panels(self) -> list[Panel]:
        return [p for p in self._panels.values() if p.visible]

    def has_visible_panel(self) -> bool:
        return any(p.visible for p in self._panels.values())

    def position_in_front(
        self,
        panel_id: str,
        head: Vec3,
        forward: Vec3,
        distance: float,
        height_offset: float,
    ) -> None:
        panel = self.get(panel_id)
        if panel is None:
            return
        panel.anchor = place_in_front(head, forward, distance, height_offset)

    # ── Hit testing ──────────────────────────────────────────────────

    @property
    def hovered(self) -> Optional[Button]:
        return self._hovered

    def hit_test(self, origin: Vec3, direction: Vec3) -> Optional[Button]:
        """
        Cast a ray against the enabled buttons of every visible panel.

        The nearest hit wins. The previous hover is reset and the new one
        set as a side effect. A pressed button that stays under the ray
        keeps its pressed state until the release edge.
        """
        nearest: Optional[Button] = None
        nearest_t = float("inf")
        for panel in self._panels.values():
            if not panel.visible:
                continue
            for button in panel.buttons:
                if not button.enabled:
                    continue
                t = intersect_button(origin, direction, panel, button)
                if t is not None and t < nearest_t:
                    nearest, nearest_t = button, t

        previous = self._hovered
        if previous is not None and previous is not nearest:
            self._set_state(previous, ButtonState.IDLE)
        if nearest is not None and nearest.state == ButtonState.IDLE:
            self._set_state(nearest, ButtonState.HOVERED)
        self._hovered = nearest
        return nearest

    def clear_hover(self) -> None:
        if self._hovered is not None:
            self._set_state(self._hovered, ButtonState.IDLE)
            self._hovered = None

    # ── Press / release edges ────────────────────────────────────────

    def activate_hovered(self) -> bool:
        """Press edge: run the hovered button's callback. Returns True if one ran."""
        button = self._hovered
        if button is None:
            return False
        self._set_state(button, ButtonState.PRESSED)
        logger.info("Button pressed: %s", button.id)
        button.on_activate()
        return True

    def release(self) -> None:
        """Release edge: a pressed button drops back to hovered (or idle if the ray left)."""
        for panel in self._panels.values():
            for button in panel.buttons:
                if button.state == ButtonState.PRESSED:
                    self._set_state(
                        button,
                        ButtonState.HOVERED if button is self._hovered else ButtonState.IDLE,
                    )

    @staticmethod
    def _set_state(button: Button, state: ButtonState) -> None:
        button.state = state
