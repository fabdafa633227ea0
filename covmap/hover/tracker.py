"""
Hover tracking for the point layer.

Pointer-move events arrive for every pixel of movement.  Rebuilding the
tooltip each time is wasteful and makes it flicker, so the tracker keeps
the id of the feature currently under the pointer and only reports a
change of identity.

State machine
-------------

    state          event        next           emits
    ------------   ----------   ------------   ---------
    IDLE           move(id)     HOVERING(id)   Show(id)
    HOVERING(id)   move(id)     HOVERING(id)   -
    HOVERING(id)   move(id2)    HOVERING(id2)  Show(id2)
    any            leave        IDLE           Hide
    any            reset        IDLE           -

``reset`` is for dataset reloads: ids are positions in the dataset, so an
id from the previous load must never match one from the new load.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple, Union

log = logging.getLogger(__name__)


class HoverState(enum.Enum):
    IDLE = "idle"
    HOVERING = "hovering"


class HoverEventKind(enum.Enum):
    MOVE = "move"
    LEAVE = "leave"
    RESET = "reset"


@dataclass(frozen=True)
class Show:
    """Display the tooltip for ``feature_id``."""
    feature_id: int


@dataclass(frozen=True)
class Hide:
    """Remove the tooltip."""


Emission = Union[Show, Hide, None]


class HoverTracker:
    """Owns the single "currently hovered feature" cell."""

    def __init__(self) -> None:
        self._state = HoverState.IDLE
        self._hovered: Optional[int] = None
        self._transitions: Dict[
            Tuple[HoverState, HoverEventKind],
            Callable[[Optional[int]], Emission],
        ] = {
            (HoverState.IDLE, HoverEventKind.MOVE): self._enter,
            (HoverState.HOVERING, HoverEventKind.MOVE): self._move,
            (HoverState.IDLE, HoverEventKind.LEAVE): self._leave,
            (HoverState.HOVERING, HoverEventKind.LEAVE): self._leave,
            (HoverState.IDLE, HoverEventKind.RESET): self._reset,
            (HoverState.HOVERING, HoverEventKind.RESET): self._reset,
        }

    @property
    def state(self) -> HoverState:
        return self._state

    @property
    def hovered_id(self) -> Optional[int]:
        return self._hovered

    # ── Events ────────────────────────────────────────────────────────

    def pointer_move(self, feature_id: int) -> Emission:
        """Pointer is over *feature_id*.  Returns Show on a change, else None."""
        return self._dispatch(HoverEventKind.MOVE, feature_id)

    def pointer_leave(self) -> Emission:
        """Pointer left the point layer.  Always returns Hide."""
        return self._dispatch(HoverEventKind.LEAVE, None)

    def reset(self) -> None:
        """Forget the hovered feature without emitting (dataset reload)."""
        self._dispatch(HoverEventKind.RESET, None)

    def _dispatch(self, kind: HoverEventKind, feature_id: Optional[int]) -> Emission:
        handler = self._transitions[(self._state, kind)]
        return handler(feature_id)

    # ── Transitions ───────────────────────────────────────────────────

    def _enter(self, feature_id: Optional[int]) -> Emission:
        self._state = HoverState.HOVERING
        self._hovered = feature_id
        log.debug("hover enter %s", feature_id)
        return Show(feature_id)

    def _move(self, feature_id: Optional[int]) -> Emission:
        if feature_id == self._hovered:
            return None
        log.debug("hover %s -> %s", self._hovered, feature_id)
        self._hovered = feature_id
        return Show(feature_id)

    def _leave(self, _feature_id: Optional[int]) -> Emission:
        if self._state is HoverState.HOVERING:
            log.debug("hover leave %s", self._hovered)
        self._state = HoverState.IDLE
        self._hovered = None
        return Hide()

    def _reset(self, _feature_id: Optional[int]) -> Emission:
        self._state = HoverState.IDLE
        self._hovered = None
        return None
