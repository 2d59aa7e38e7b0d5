"""
Popup overlay: up to three stacked toast cards for the center's popup queue.

Purely presentational. Each card only tracks animation progress (spring entrance, horizontal
drag, slide-out exit); which popups exist is always read from NotificationCenter.popups.
A card's vertical position depends only on its index (index 0 nearest the top).
"""
import logging
from datetime import datetime

from campusbell.client.center import NotificationCenter
from campusbell.core.constants import (
    DEFAULT_SCREEN_WIDTH,
    POPUP_BACKGROUND,
    POPUP_BASE_TOP,
    POPUP_BORDER,
    POPUP_ENTER_FROM_SCALE,
    POPUP_ENTER_FROM_Y,
    POPUP_EXIT_SECONDS,
    POPUP_SPRING_FRICTION,
    POPUP_SPRING_TENSION,
    POPUP_STACK_SPACING,
    POPUP_URGENT_BACKGROUND,
    POPUP_URGENT_BORDER,
    SWIPE_CAPTURE_DX,
    SWIPE_DISMISS_DX,
    SWIPE_DISMISS_VX,
)
from campusbell.services.display import format_relative_time, is_urgent, notification_icon, priority_color
from campusbell.services.types import PopupNotification

logger = logging.getLogger(__name__)

_MAX_STEP = 1.0 / 120.0  # integrate springs in small steps so large frame gaps stay stable
_REST_EPSILON = 1e-3


def popup_top_offset(index: int) -> int:
    return POPUP_BASE_TOP + index * POPUP_STACK_SPACING


def should_capture_swipe(dx: float) -> bool:
    return abs(dx) > SWIPE_CAPTURE_DX


def is_dismiss_swipe(dx: float, vx: float) -> bool:
    return dx > SWIPE_DISMISS_DX or vx > SWIPE_DISMISS_VX


class Spring:
    """Damped spring (unit mass) moving `value` toward `target`."""

    __slots__ = ("value", "target", "velocity", "tension", "friction")

    def __init__(
        self,
        value: float,
        target: float,
        *,
        tension: float = POPUP_SPRING_TENSION,
        friction: float = POPUP_SPRING_FRICTION,
    ):
        self.value = value
        self.target = target
        self.velocity = 0.0
        self.tension = tension
        self.friction = friction

    @property
    def at_rest(self) -> bool:
        return abs(self.target - self.value) < _REST_EPSILON and abs(self.velocity) < _REST_EPSILON

    def step(self, dt: float) -> None:
        remaining = dt
        while remaining > 0 and not self.at_rest:
            h = min(remaining, _MAX_STEP)
            accel = self.tension * (self.target - self.value) - self.friction * self.velocity
            self.velocity += accel * h
            self.value += self.velocity * h
            remaining -= h
        if self.at_rest:
            self.value = self.target
            self.velocity = 0.0


class PopupCard:
    """Animation state for one queued popup."""

    def __init__(self, popup: PopupNotification, index: int, screen_width: float = DEFAULT_SCREEN_WIDTH):
        self.popup = popup
        self.index = index
        self.screen_width = screen_width
        self.enter = Spring(0.0, 1.0)
        self.translate_x = 0.0
        self.dragging = False
        self._snap_back: Spring | None = None
        self.exiting = False
        self._exit_elapsed = 0.0
        self._exit_from_x = 0.0
        self._exit_from_opacity = 1.0

    @property
    def id(self) -> str:
        return self.popup.id

    @property
    def top_offset(self) -> int:
        return popup_top_offset(self.index)

    @property
    def translate_y(self) -> float:
        return POPUP_ENTER_FROM_Y * (1.0 - self.enter.value)

    @property
    def scale(self) -> float:
        return POPUP_ENTER_FROM_SCALE + (1.0 - POPUP_ENTER_FROM_SCALE) * self.enter.value

    @property
    def opacity(self) -> float:
        entered = min(max(self.enter.value, 0.0), 1.0)
        if not self.exiting:
            return entered
        progress = min(self._exit_elapsed / POPUP_EXIT_SECONDS, 1.0)
        return self._exit_from_opacity * (1.0 - progress)

    @property
    def exit_finished(self) -> bool:
        return self.exiting and self._exit_elapsed >= POPUP_EXIT_SECONDS

    def style(self, now: datetime | None = None) -> dict:
        n = self.popup.notification
        urgent = is_urgent(n.priority)
        return {
            "top": self.top_offset,
            "translate_x": self.translate_x,
            "translate_y": self.translate_y,
            "scale": self.scale,
            "opacity": self.opacity,
            "accent_color": priority_color(n.priority),
            "background_color": POPUP_URGENT_BACKGROUND if urgent else POPUP_BACKGROUND,
            "border_color": POPUP_URGENT_BORDER if urgent else POPUP_BORDER,
            "icon": notification_icon(n.type),
            "title": n.title,
            "message": n.message,
            "timestamp": format_relative_time(n.created_at, now),
        }

    # --- Gesture ---

    def drag(self, dx: float) -> bool:
        """Horizontal move. Returns False until the drag passes the capture distance."""
        if self.exiting:
            return False
        if not self.dragging:
            if not should_capture_swipe(dx):
                return False
            self.dragging = True
            self._snap_back = None
        # Rightward only
        if dx > 0:
            self.translate_x = dx
        return True

    def release(self, dx: float, vx: float) -> bool:
        """End of drag: start the exit past the threshold, else spring back. Returns True on exit."""
        if self.exiting:
            return True
        self.dragging = False
        if is_dismiss_swipe(dx, vx):
            self.start_exit()
            return True
        self._snap_back = Spring(self.translate_x, 0.0)
        return False

    def start_exit(self) -> None:
        if self.exiting:
            return
        self.exiting = True
        self._exit_elapsed = 0.0
        self._exit_from_x = self.translate_x
        self._exit_from_opacity = self.opacity
        self._snap_back = None

    # --- Frame step ---

    def step(self, dt: float) -> None:
        self.enter.step(dt)
        if self.exiting:
            self._exit_elapsed = min(self._exit_elapsed + dt, POPUP_EXIT_SECONDS)
            progress = self._exit_elapsed / POPUP_EXIT_SECONDS
            self.translate_x = self._exit_from_x + (self.screen_width - self._exit_from_x) * progress
        elif self._snap_back is not None and not self.dragging:
            self._snap_back.step(dt)
            self.translate_x = self._snap_back.value
            if self._snap_back.at_rest:
                self._snap_back = None


class PopupOverlay:
    """Cards mirroring center.popups. Finished exits call back into the center to dismiss."""

    def __init__(self, center: NotificationCenter, *, screen_width: float = DEFAULT_SCREEN_WIDTH) -> None:
        self._center = center
        self._screen_width = screen_width
        self._cards: dict[str, PopupCard] = {}
        self._order: list[str] = []
        self.sync(center)
        center.add_listener(self.sync)

    def detach(self) -> None:
        self._center.remove_listener(self.sync)

    def sync(self, center: NotificationCenter | None = None) -> None:
        center = center or self._center
        order = [p.id for p in center.popups]
        cards: dict[str, PopupCard] = {}
        for index, popup in enumerate(center.popups):
            card = self._cards.get(popup.id)
            if card is None:
                card = PopupCard(popup, index, self._screen_width)
            card.index = index
            cards[popup.id] = card
        self._cards = cards
        self._order = order

    @property
    def cards(self) -> list[PopupCard]:
        return [self._cards[i] for i in self._order]

    @property
    def visible(self) -> bool:
        return bool(self._order)

    def card(self, notification_id: str) -> PopupCard | None:
        return self._cards.get(notification_id)

    def drag(self, notification_id: str, dx: float) -> bool:
        card = self._cards.get(notification_id)
        return card.drag(dx) if card else False

    def release(self, notification_id: str, dx: float, vx: float) -> bool:
        card = self._cards.get(notification_id)
        return card.release(dx, vx) if card else False

    def close(self, notification_id: str) -> None:
        """Close button: same slide-out as a swipe."""
        card = self._cards.get(notification_id)
        if card:
            card.start_exit()

    async def tap(self, notification_id: str) -> bool:
        """Tap to view: mark read; the card leaves only if the backend write succeeded."""
        return await self._center.mark_read_and_dismiss(notification_id)

    def advance(self, dt: float) -> None:
        """Step all animations by dt seconds; dismiss cards whose exit just finished."""
        finished = []
        for card in self.cards:
            card.step(dt)
            if card.exit_finished:
                finished.append(card.id)
        for notification_id in finished:
            logger.debug("Popup %s swiped away", notification_id)
            self._center.dismiss_popup(notification_id)
