"""
Map session: owns the active dataset and turns pointer events into
renderer commands.

The session sits between the feed (raw records) and the rendering
collaborator (anything implementing ``Renderer``).  It:

1. Transforms a completed fetch and derives its scale, swapping both in
   together so a new scale is never paired with old features.
2. Resets the hover tracker on every swap, because feature ids are only
   meaningful within one load.
3. Converts hover transitions into ``ShowTooltip`` / ``HideTooltip``
   commands carrying the wrapped anchor and tooltip content.

Everything here runs on one thread (the GUI thread in the Qt app); fetches
complete elsewhere and are handed in through ``load`` / ``fail``.

Usage
-----
    session = MapSession(renderer=widget)
    session.begin_fetch()
    session.load(records)
    cmd = session.pointer_move(feature_id=3, pointer_lng=372.5)
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Union

from .config import MapConfig
from .errors import EmptyDatasetError, MalformedRecordError
from .geo.country import CountryLookup
from .geo.features import PointFeature, transform_records
from .geo.scales import ChannelScale, derive_scale
from .geo.wrap import TooltipAnchor, tooltip_anchor
from .hover.tooltip import TooltipContent, build_tooltip
from .hover.tracker import Hide, HoverTracker, Show

log = logging.getLogger(__name__)


class SessionStatus(enum.Enum):
    PENDING = "pending"
    READY = "ready"
    NO_DATA = "no_data"


@dataclass(frozen=True)
class ShowTooltip:
    feature_id: int
    anchor: TooltipAnchor
    content: TooltipContent


@dataclass(frozen=True)
class HideTooltip:
    pass


TooltipCommand = Union[ShowTooltip, HideTooltip]


class Renderer(Protocol):
    """What the session needs from a map engine."""

    def show_layer(self, features: Sequence[PointFeature], scale: ChannelScale) -> None: ...

    def show_no_data(self, reason: str) -> None: ...

    def show_tooltip(self, command: ShowTooltip) -> None: ...

    def hide_tooltip(self) -> None: ...


class MapSession:
    """Dataset lifecycle and hover protocol for one map view.

    Parameters
    ----------
    renderer : Renderer, optional
        Receives layer and tooltip commands as they happen.  Commands are
        also returned from the event methods, so a renderer is optional.
    lookup : CountryLookup, optional
        Flag resolver; built from *config* when omitted.
    config : MapConfig, optional
    """

    def __init__(
        self,
        renderer: Optional[Renderer] = None,
        lookup: Optional[CountryLookup] = None,
        config: Optional[MapConfig] = None,
    ):
        self._config = config or MapConfig()
        self._renderer = renderer
        self._lookup = lookup or CountryLookup(self._config.flag_url_template)
        self._tracker = HoverTracker()
        self._features: List[PointFeature] = []
        self._scale: Optional[ChannelScale] = None
        self._status = SessionStatus.PENDING
        self._loads = 0

    # ── Accessors ─────────────────────────────────────────────────────

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def features(self) -> List[PointFeature]:
        return list(self._features)

    @property
    def scale(self) -> Optional[ChannelScale]:
        return self._scale

    @property
    def hovered_id(self) -> Optional[int]:
        return self._tracker.hovered_id

    @property
    def tracker(self) -> HoverTracker:
        return self._tracker

    def attach_renderer(self, renderer: Renderer) -> None:
        """Attach *renderer* and replay the current dataset state to it."""
        self._renderer = renderer
        if self._status is SessionStatus.READY and self._scale is not None:
            renderer.show_layer(list(self._features), self._scale)
        elif self._status is SessionStatus.NO_DATA:
            renderer.show_no_data("no data available")

    # ── Dataset lifecycle ─────────────────────────────────────────────

    def begin_fetch(self) -> None:
        """A fetch was issued.  The current dataset, if any, stays visible."""
        if self._status is not SessionStatus.READY:
            self._status = SessionStatus.PENDING

    def load(self, records: Sequence[dict]) -> SessionStatus:
        """Replace the dataset with *records* (a completed fetch).

        Transform and scale derivation both finish before anything is
        swapped.  On a malformed or empty feed the session drops to
        NO_DATA rather than keeping a half-valid dataset.
        """
        try:
            features = transform_records(records)
            scale = derive_scale(features, self._config)
        except (MalformedRecordError, EmptyDatasetError) as exc:
            log.warning("Feed rejected: %s", exc)
            self._clear(str(exc))
            return self._status

        self._features = features
        self._scale = scale
        self._tracker.reset()
        self._status = SessionStatus.READY
        self._loads += 1
        log.info("Dataset %d loaded: %d points", self._loads, len(features))
        if self._renderer is not None:
            self._renderer.hide_tooltip()
            self._renderer.show_layer(list(features), scale)
        return self._status

    def fail(self, reason: str) -> SessionStatus:
        """A fetch failed; treated the same as an empty feed."""
        log.warning("Feed fetch failed: %s", reason)
        self._clear(reason)
        return self._status

    def _clear(self, reason: str) -> None:
        self._features = []
        self._scale = None
        self._tracker.reset()
        self._status = SessionStatus.NO_DATA
        if self._renderer is not None:
            self._renderer.hide_tooltip()
            self._renderer.show_no_data(reason)

    # ── Pointer events ────────────────────────────────────────────────

    def pointer_move(self, feature_id: int, pointer_lng: float) -> Optional[ShowTooltip]:
        """Pointer is over *feature_id* at longitude *pointer_lng*.

        Returns a ShowTooltip when the hovered feature changed, else None.
        Events for ids outside the active dataset are ignored.
        """
        if self._status is not SessionStatus.READY:
            return None
        if not 0 <= feature_id < len(self._features):
            log.debug("Ignoring hover on stale feature id %s", feature_id)
            return None

        emission = self._tracker.pointer_move(feature_id)
        if not isinstance(emission, Show):
            return None

        feature = self._features[emission.feature_id]
        command = ShowTooltip(
            feature_id=feature.feature_id,
            anchor=tooltip_anchor(feature, pointer_lng),
            content=build_tooltip(feature, self._lookup),
        )
        if self._renderer is not None:
            self._renderer.show_tooltip(command)
        return command

    def pointer_leave(self) -> Optional[HideTooltip]:
        """Pointer left the point layer."""
        if self._status is not SessionStatus.READY:
            return None
        emission = self._tracker.pointer_leave()
        if not isinstance(emission, Hide):
            return None
        if self._renderer is not None:
            self._renderer.hide_tooltip()
        return HideTooltip()

    # ── Reporting ─────────────────────────────────────────────────────

    def summary(self, top: int = 5) -> Dict:
        """Plain-dict overview of the active dataset."""
        out: Dict = {"status": self._status.value, "points": len(self._features)}
        if self._scale is None:
            return out
        out["total_cases"] = sum(f.cases for f in self._features)
        out["total_deaths"] = sum(f.deaths for f in self._features)
        out["scale"] = self._scale.as_dict()
        ranked = sorted(self._features, key=lambda f: f.cases, reverse=True)
        out["top"] = [
            {
                "label": f.label,
                "cases": f.cases,
                "deaths": f.deaths,
                "radius": round(self._scale.radius(f.cases), 2),
                "color": self._scale.color(f.cases),
            }
            for f in ranked[:top]
        ]
        return out
