from fastapi import APIRouter, File, HTTPException, Response, UploadFile

from ..errors import InputError
from .encoder import encode_upload
from .models import RenderRequest, RenderResponse, UploadResponse
from .surface import DrawingSurface

router = APIRouter(prefix="/api/v1/canvas", tags=["canvas"])


def _render(request: RenderRequest) -> DrawingSurface:
    # Size bounds are enforced by RenderRequest validation (422)
    surface = DrawingSurface(request.canvas_width, request.canvas_height)
    surface.replay(request.strokes)
    return surface


@router.post("/render", response_model=RenderResponse)
async def render_strokes(request: RenderRequest):
    """
    Replays strokes onto a fresh surface and returns the flattened PNG.
    """
    surface = _render(request)
    return RenderResponse(
        image=surface.export(),
        blank=surface.is_blank(),
        stroke_count=len(surface.strokes),
    )


@router.post("/download")
async def download_png(request: RenderRequest):
    filename, png = _render(request).download()
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_image(file: UploadFile = File(...)):
    """Validates an uploaded image and returns it re-encoded as a PNG data URL."""
    contents = await file.read()
    try:
        image = encode_upload(contents, file.content_type, file.filename)
    except InputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return UploadResponse(image=image, filename=file.filename or None)
