"""
Drawing surface: freehand pen/eraser strokes painted into a PIL raster.

Ink lives on a transparent RGBA layer so the eraser can punch pixels out
(destination-out). Snapshots flatten that layer onto the opaque background,
so exported images never contain transparent holes.
"""
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw

from .. import config
from ..utils import flatten_onto, image_to_png_bytes
from .encoder import encode_raster
from .models import Point, Stroke, StrokeIn, StrokeStyle, SurfaceBounds, Tool, Touch

logger = logging.getLogger("drawing_surface")


def map_mouse(offset_x: float, offset_y: float) -> Point:
    """Mouse events already carry surface-local offsets."""
    return Point(x=offset_x, y=offset_y)


def map_touch(touches: Sequence[Touch], bounds: SurfaceBounds) -> Point:
    """
    Translate the first active touch into surface-local coordinates.
    No active contacts maps to the origin.
    """
    if not touches:
        return Point(x=0, y=0)
    touch = touches[0]
    return Point(x=touch.clientX - bounds.left, y=touch.clientY - bounds.top)


class DrawingSurface:
    def __init__(
        self,
        width: int = config.CANVAS_WIDTH,
        height: int = config.CANVAS_HEIGHT,
        background: Tuple[int, int, int] = config.CANVAS_BACKGROUND,
        preserve_on_resize: bool = config.PRESERVE_STROKES_ON_RESIZE,
    ):
        self.background = background
        self.preserve_on_resize = preserve_on_resize
        self.tool = Tool.PEN
        self.strokes: List[Stroke] = []
        self.current: Optional[Stroke] = None
        self._ink: Optional[Image.Image] = None
        self._draw: Optional[ImageDraw.ImageDraw] = None
        self.width = 0
        self.height = 0
        self._init_raster(width, height)

    # --- raster state ---

    def _init_raster(self, width: int, height: int):
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        if self.width == 0 or self.height == 0:
            # No drawable area: stroke operations become no-ops
            self._ink = None
            self._draw = None
            return
        self._ink = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        self._draw = ImageDraw.Draw(self._ink)

    @property
    def drawing(self) -> bool:
        return self.current is not None

    def set_tool(self, tool: Tool):
        self.tool = Tool(tool)

    def clear(self):
        self.strokes = []
        self.current = None
        self._init_raster(self.width, self.height)

    def resize(self, width: int, height: int):
        """
        Resizing a raster wipes its pixels. Strokes are replayed when
        preserve_on_resize is set, otherwise they are discarded.
        """
        history = list(self.strokes) if self.preserve_on_resize else []
        self.current = None
        self.strokes = []
        self._init_raster(width, height)
        if history:
            self.replay_strokes(history)
        logger.debug("surface resized to %sx%s (kept %d strokes)", self.width, self.height, len(self.strokes))

    # --- stroke lifecycle ---

    def begin(self, point: Point, tool: Optional[Tool] = None):
        if self._draw is None:
            return
        style = StrokeStyle.for_tool(Tool(tool) if tool is not None else self.tool)
        self.current = Stroke(points=[point], style=style)

    def extend(self, point: Point):
        if self.current is None or self._draw is None:
            return
        previous = self.current.points[-1]
        self.current.points.append(point)
        self._paint_segment(previous, point, self.current.style)

    def end(self):
        if self.current is None:
            return
        self.current.completed = True
        self.strokes.append(self.current)
        self.current = None

    def _paint_segment(self, start: Point, end: Point, style: StrokeStyle):
        if style.composite == "destination-out":
            fill = (0, 0, 0, 0)
        else:
            fill = ImageColor.getrgb(style.color)[:3] + (255,)
        width = max(1, int(round(style.width)))
        r = style.width / 2.0
        self._draw.line([(start.x, start.y), (end.x, end.y)], fill=fill, width=width)
        # Round caps and joins
        for p in (start, end):
            self._draw.ellipse([p.x - r, p.y - r, p.x + r, p.y + r], fill=fill)

    def replay_strokes(self, strokes: Sequence[Stroke]):
        for stroke in strokes:
            if not stroke.points:
                continue
            self.current = Stroke(points=[stroke.points[0]], style=stroke.style)
            for point in stroke.points[1:]:
                self.extend(point)
            self.end()

    def replay(self, strokes: Sequence[StrokeIn]):
        """Paint strokes received over HTTP, each with its own tool."""
        for s in strokes:
            if not s.points:
                continue
            self.begin(s.points[0], tool=s.tool)
            for point in s.points[1:]:
                self.extend(point)
            self.end()

    # --- export ---

    def snapshot(self) -> Optional[Image.Image]:
        if self._ink is None:
            return None
        return flatten_onto(self._ink, self.background)

    def is_blank(self) -> bool:
        if self._ink is None:
            return True
        alpha = np.asarray(self._ink)[..., 3]
        return not alpha.any()

    def export(self) -> Optional[str]:
        image = self.snapshot()
        if image is None:
            return None
        return encode_raster(image)

    def download(self) -> Tuple[str, bytes]:
        image = self.snapshot()
        if image is None:
            image = Image.new("RGB", (1, 1), self.background)
        return config.DOWNLOAD_FILENAME, image_to_png_bytes(image)
