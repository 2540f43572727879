from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from .. import config


class Tool(str, Enum):
    PEN = "pen"
    ERASER = "eraser"


class Point(BaseModel):
    x: float
    y: float


class StrokeStyle(BaseModel):
    """Styling captured when a stroke begins. Never mutated afterwards."""
    model_config = ConfigDict(frozen=True)

    tool: Tool
    width: float
    color: str
    composite: str  # source-over | destination-out

    @classmethod
    def for_tool(cls, tool: Tool) -> "StrokeStyle":
        if tool == Tool.ERASER:
            return cls(tool=tool, width=config.ERASER_WIDTH, color=config.PEN_COLOR, composite="destination-out")
        return cls(tool=tool, width=config.PEN_WIDTH, color=config.PEN_COLOR, composite="source-over")


class Stroke(BaseModel):
    points: List[Point]
    style: StrokeStyle
    completed: bool = False


class SurfaceBounds(BaseModel):
    """On-screen position of the surface (getBoundingClientRect)."""
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0


class Touch(BaseModel):
    clientX: float
    clientY: float


# --- HTTP payloads ---

class StrokeIn(BaseModel):
    tool: Tool = Tool.PEN
    points: List[Point]


class RenderRequest(BaseModel):
    strokes: List[StrokeIn] = Field(default_factory=list)
    canvas_width: int = Field(config.CANVAS_WIDTH, gt=0, le=config.MAX_CANVAS_SIDE)
    canvas_height: int = Field(config.CANVAS_HEIGHT, gt=0, le=config.MAX_CANVAS_SIDE)


class RenderResponse(BaseModel):
    image: str  # PNG data URL
    blank: bool
    stroke_count: int


class UploadResponse(BaseModel):
    image: str
    filename: Optional[str] = None
