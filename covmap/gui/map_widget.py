"""
Point map widget — QGraphicsScene-based rendering of the case layer.

Renders the dataset as circles on a dark equirectangular world:
  - One circle per feature per world copy (lon - 360, lon, lon + 360) so
    the map repeats horizontally when zoomed out
  - Circle radius / colour / stroke from the dataset's ChannelScale
  - Graticule every 30 degrees
  - Floating tooltip (text plus country flag) driven by MapSession
    commands, kept on its point while the view pans
  - "No data" overlay when the feed is unavailable

Hit testing happens in the view: every mouse move finds the top circle
under the cursor and reports it to the session with the pointer's scene
longitude; moving off all circles reports a layer leave.  The session
decides whether anything actually changed.

Coordinate system: scene x = lon * PX_PER_DEG, scene y = -lat * PX_PER_DEG.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from PyQt5 import QtCore, QtGui, QtWidgets

from ..config import MapConfig
from ..geo.features import PointFeature
from ..geo.scales import ChannelScale
from ..session import MapSession, ShowTooltip
from .flags import FlagCache

log = logging.getLogger(__name__)

PX_PER_DEG = 4.0
WORLD_COPIES = (-360.0, 0.0, 360.0)


def _to_scene(lon: float, lat: float) -> QtCore.QPointF:
    return QtCore.QPointF(lon * PX_PER_DEG, -lat * PX_PER_DEG)


# ── Point graphics item ───────────────────────────────────────────────

class PointItem(QtWidgets.QGraphicsEllipseItem):
    """One circle for one feature on one world copy.

    Ignores view transformations so the radius stays in screen pixels at
    every zoom level.
    """

    def __init__(self, feature: PointFeature, scale: ChannelScale, offset: float):
        r = scale.radius(feature.cases)
        super().__init__(-r, -r, 2 * r, 2 * r)
        self.feature_id = feature.feature_id
        self.setPos(_to_scene(feature.lon + offset, feature.lat))
        self.setFlag(QtWidgets.QGraphicsItem.ItemIgnoresTransformations, True)

        fill = QtGui.QColor(scale.color(feature.cases))
        fill.setAlphaF(scale.opacity)
        self.setBrush(QtGui.QBrush(fill))
        pen = QtGui.QPen(QtGui.QColor(255, 255, 255, 200))
        pen.setWidthF(scale.stroke_width(feature.cases))
        pen.setCosmetic(True)
        self.setPen(pen)
        # Small counts on top of big ones
        self.setZValue(-r)
        self.setCursor(QtCore.Qt.PointingHandCursor)


# ── View with pointer hit testing ─────────────────────────────────────

class _PointMapView(QtWidgets.QGraphicsView):
    def __init__(self, scene: QtWidgets.QGraphicsScene, owner: "PointMapWidget"):
        super().__init__(scene, owner)
        self._owner = owner
        self.setMouseTracking(True)

    def mouseMoveEvent(self, event):
        super().mouseMoveEvent(event)
        self._owner._pointer_at(event.pos())

    def leaveEvent(self, event):
        self._owner._pointer_left()
        super().leaveEvent(event)


# ── Main map widget ───────────────────────────────────────────────────

class PointMapWidget(QtWidgets.QWidget):
    """Interactive case map.  Implements the session's Renderer protocol.

    Signals
    -------
    point_hovered(int)
        Emitted with the feature id when a tooltip is shown.
    """

    point_hovered = QtCore.pyqtSignal(int)

    def __init__(
        self,
        session: MapSession,
        config: Optional[MapConfig] = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ):
        super().__init__(parent)
        self._session = session
        self._config = config or MapConfig()
        self._point_items: List[PointItem] = []
        self._initial_fit_done = False

        self._scene = QtWidgets.QGraphicsScene(self)
        self._scene.setBackgroundBrush(QtGui.QBrush(QtGui.QColor(6, 10, 16)))

        self._view = _PointMapView(self._scene, self)
        self._view.setRenderHints(QtGui.QPainter.Antialiasing)
        self._view.setDragMode(QtWidgets.QGraphicsView.ScrollHandDrag)
        self._view.setTransformationAnchor(QtWidgets.QGraphicsView.AnchorUnderMouse)
        self._view.setResizeAnchor(QtWidgets.QGraphicsView.AnchorViewCenter)
        self._view.setHorizontalScrollBarPolicy(QtCore.Qt.ScrollBarAlwaysOff)
        self._view.setVerticalScrollBarPolicy(QtCore.Qt.ScrollBarAlwaysOff)
        self._view.setStyleSheet("border: none; background: #060a10;")

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._view, 1)

        # Floating tooltip: text with the country flag beside it
        self._tooltip = QtWidgets.QFrame(self._view)
        self._tooltip.setAttribute(QtCore.Qt.WA_TransparentForMouseEvents, True)
        self._tooltip.setStyleSheet(
            "QFrame { background: rgba(255,255,255,235); border-radius: 4px; }"
            "QLabel { background: transparent; color: #202020; font-size: 11px; }"
        )
        tip_layout = QtWidgets.QHBoxLayout(self._tooltip)
        tip_layout.setContentsMargins(8, 4, 8, 4)
        tip_layout.setSpacing(8)
        self._tooltip_text = QtWidgets.QLabel(self._tooltip)
        self._tooltip_text.setTextFormat(QtCore.Qt.RichText)
        self._tooltip_flag = QtWidgets.QLabel(self._tooltip)
        self._tooltip_flag.setAlignment(QtCore.Qt.AlignTop)
        self._tooltip_flag.hide()
        tip_layout.addWidget(self._tooltip_text)
        tip_layout.addWidget(self._tooltip_flag)
        self._tooltip.hide()
        self._tooltip_command: Optional[ShowTooltip] = None

        self._flags = FlagCache(parent=self)
        self._flags.flag_ready.connect(self._on_flag_ready)

        # Drag pan scrolls the view; keep the tooltip on its point
        self._view.horizontalScrollBar().valueChanged.connect(self._follow_anchor)
        self._view.verticalScrollBar().valueChanged.connect(self._follow_anchor)

        # Status line (point count / no data)
        self._status_label = QtWidgets.QLabel("Loading…", self._view)
        self._status_label.setAttribute(QtCore.Qt.WA_TransparentForMouseEvents, True)
        self._status_label.setStyleSheet(
            "color: rgba(0,204,255,200); font-size: 11px; "
            "padding: 2px 6px; background: transparent;"
        )

        self._add_world()
        self._session.attach_renderer(self)

    # ── Scene construction ────────────────────────────────────────────

    def _add_world(self) -> None:
        """Ocean rectangles and graticule for each world copy."""
        land_pen = QtGui.QPen(QtGui.QColor(40, 60, 80, 160))
        land_pen.setCosmetic(True)
        grid_pen = QtGui.QPen(QtGui.QColor(30, 44, 60, 140))
        grid_pen.setCosmetic(True)
        grid_pen.setStyle(QtCore.Qt.DotLine)

        for offset in WORLD_COPIES:
            top_left = _to_scene(-180 + offset, 90)
            bottom_right = _to_scene(180 + offset, -90)
            rect = QtCore.QRectF(top_left, bottom_right)
            item = self._scene.addRect(rect, land_pen, QtGui.QBrush(QtGui.QColor(10, 16, 26)))
            item.setZValue(-1e6)
            for lon in range(-150, 180, 30):
                self._scene.addLine(
                    QtCore.QLineF(_to_scene(lon + offset, 90), _to_scene(lon + offset, -90)),
                    grid_pen,
                ).setZValue(-1e5)
            for lat in range(-60, 90, 30):
                self._scene.addLine(
                    QtCore.QLineF(_to_scene(-180 + offset, lat), _to_scene(180 + offset, lat)),
                    grid_pen,
                ).setZValue(-1e5)

        self._scene.setSceneRect(QtCore.QRectF(
            _to_scene(-540, 90), _to_scene(540, -90),
        ))

    def _clear_points(self) -> None:
        for item in self._point_items:
            self._scene.removeItem(item)
        self._point_items = []

    # ── Renderer protocol ─────────────────────────────────────────────

    def show_layer(self, features: Sequence[PointFeature], scale: ChannelScale) -> None:
        self._clear_points()
        for feature in features:
            for offset in WORLD_COPIES:
                item = PointItem(feature, scale, offset)
                self._scene.addItem(item)
                self._point_items.append(item)
        self._status_label.setText(
            f"{len(features)} locations  |  cases {scale.minimum:,.0f}"
            f" to {scale.maximum:,.0f}  (mean {scale.mean:,.0f})"
        )
        self._status_label.adjustSize()
        log.info("Point layer drawn: %d features", len(features))

    def show_no_data(self, reason: str) -> None:
        self._clear_points()
        self._status_label.setText("No data available")
        self._status_label.setToolTip(reason)
        self._status_label.adjustSize()

    def show_tooltip(self, command: ShowTooltip) -> None:
        self._tooltip_command = command
        self._tooltip_text.setText(command.content.to_html(include_flag=False))
        url = command.content.flag_url
        self._set_flag(self._flags.pixmap(url) if url else None)
        self._place_tooltip()
        self._tooltip.show()
        self._tooltip.raise_()
        self.point_hovered.emit(command.feature_id)

    def hide_tooltip(self) -> None:
        self._tooltip_command = None
        self._tooltip.hide()

    def _set_flag(self, pixmap: Optional[QtGui.QPixmap]) -> None:
        if pixmap is None:
            self._tooltip_flag.clear()
            self._tooltip_flag.hide()
        else:
            self._tooltip_flag.setPixmap(pixmap)
            self._tooltip_flag.show()
        self._tooltip.adjustSize()

    def _on_flag_ready(self, url: str) -> None:
        cmd = self._tooltip_command
        if cmd is None or cmd.content.flag_url != url:
            return
        self._set_flag(self._flags.pixmap(url))
        self._place_tooltip()

    def tooltip_position(self) -> Optional[QtCore.QPoint]:
        """Top-left corner (view coordinates) for the current tooltip."""
        cmd = self._tooltip_command
        if cmd is None:
            return None
        anchor = self._view.mapFromScene(_to_scene(cmd.anchor.lon, cmd.anchor.lat))
        x = anchor.x() - self._tooltip.width() // 2
        y = anchor.y() - self._tooltip.height() - 12
        if y < 0:
            y = anchor.y() + 12
        x = max(0, min(x, self._view.width() - self._tooltip.width()))
        return QtCore.QPoint(int(x), int(y))

    def _place_tooltip(self) -> None:
        pos = self.tooltip_position()
        if pos is not None:
            self._tooltip.move(pos)

    def _follow_anchor(self, _value: int = 0) -> None:
        if self._tooltip_command is not None:
            self._place_tooltip()

    # ── Pointer handling ──────────────────────────────────────────────

    def _pointer_at(self, pos: QtCore.QPoint) -> None:
        hit = None
        for item in self._view.items(pos):
            if isinstance(item, PointItem):
                hit = item
                break
        if hit is None:
            if self._session.hovered_id is not None:
                self._session.pointer_leave()
            return
        pointer_lng = self._view.mapToScene(pos).x() / PX_PER_DEG
        self._session.pointer_move(hit.feature_id, pointer_lng)

    def _pointer_left(self) -> None:
        if self._session.hovered_id is not None:
            self._session.pointer_leave()

    # ── View control ──────────────────────────────────────────────────

    def fit_initial_view(self) -> None:
        """Centre on the configured start point at the configured zoom."""
        lon, lat = self._config.initial_center
        self._view.resetTransform()
        zoom = 2.0 ** (self._config.initial_zoom - 2.0)
        self._view.scale(zoom, zoom)
        self._view.centerOn(_to_scene(lon, lat))

    def wheelEvent(self, event):
        """Smooth zoom anchored under the mouse cursor."""
        factor = 1.12
        if event.angleDelta().y() > 0:
            self._view.scale(factor, factor)
        else:
            self._view.scale(1.0 / factor, 1.0 / factor)
        self.dismiss_tooltip()
        event.accept()

    def dismiss_tooltip(self) -> None:
        """Hide the tooltip through the session so the hover state resets too.

        The next move over the same circle then shows it again at the new
        zoom level.
        """
        if self._session.hovered_id is not None:
            self._session.pointer_leave()
        else:
            self.hide_tooltip()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._status_label.move(6, self._view.height() - self._status_label.height() - 4)
        if not self._initial_fit_done:
            self._initial_fit_done = True
            self.fit_initial_view()
