import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .auth import router as auth_router
from .canvas.api import router as canvas_router
from .recognition.api import router as recognition_router
from .speech.api import router as speech_router
from .workspace_api import router as workspace_router

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("writespeak")

app = FastAPI(title="Write & Speak")

# CORS_ORIGINS="*" allows everything, a comma list allows those origins,
# empty allows localhost on any port.
if config.CORS_ORIGINS == "*":
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=False,
                       allow_methods=["*"], allow_headers=["*"])
elif config.CORS_ORIGINS:
    origins = [o.strip() for o in config.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(CORSMiddleware, allow_origins=origins, allow_credentials=True,
                       allow_methods=["*"], allow_headers=["*"])
else:
    app.add_middleware(CORSMiddleware, allow_origin_regex=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
                       allow_credentials=True, allow_methods=["*"], allow_headers=["*"])

app.include_router(recognition_router)
app.include_router(canvas_router)
app.include_router(speech_router)
app.include_router(auth_router)
app.include_router(workspace_router)


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": f"internal error: {exc.__class__.__name__}"})


@app.get("/health")
def health():
    return {"status": "ok", "service": "write-speak", "recognition_provider": config.RECOGNITION_PROVIDER}
