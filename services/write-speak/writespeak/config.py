"""
Configuration for the Write & Speak service.
Every value can be overridden from the environment or a local .env file.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


# ===============================
# RECOGNITION
# ===============================

# Where the recognition client posts {image, language}
RECOGNITION_ENDPOINT = os.getenv(
    "RECOGNITION_ENDPOINT", "http://localhost:8000/api/v1/handwriting/recognize"
)

# Hung requests surface as ServiceUnavailable after this many seconds
RECOGNITION_TIMEOUT_SECONDS = float(os.getenv("RECOGNITION_TIMEOUT_SECONDS", "30"))

# Vision provider used by the recognition endpoint: openai | google
RECOGNITION_PROVIDER = os.getenv("RECOGNITION_PROVIDER", "openai").strip().lower()

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
GOOGLE_VISION_API_KEY = os.getenv("GOOGLE_VISION_API_KEY", "")
GOOGLE_VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"

SUPPORTED_LANGUAGES = ("en", "hi")
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "en")

# ===============================
# CANVAS
# ===============================

CANVAS_WIDTH = int(os.getenv("CANVAS_WIDTH", "800"))
CANVAS_HEIGHT = int(os.getenv("CANVAS_HEIGHT", "400"))
CANVAS_BACKGROUND = (255, 255, 255)
# Largest side accepted for server-side rendering
MAX_CANVAS_SIDE = int(os.getenv("MAX_CANVAS_SIDE", "4096"))

PEN_WIDTH = 3
PEN_COLOR = "#000000"
ERASER_WIDTH = 20

# Resizing discards strokes unless this is enabled
PRESERVE_STROKES_ON_RESIZE = _flag("PRESERVE_STROKES_ON_RESIZE")

DOWNLOAD_FILENAME = "handwriting.png"

# ===============================
# SPEECH
# ===============================

MIN_RATE = 0.5
MAX_RATE = 2.0
DEFAULT_RATE = 1.0
DEFAULT_VOLUME = 80

# ===============================
# AUTH / SERVER
# ===============================

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "").strip()

# Open workspaces kept in memory; the oldest is closed past this
MAX_WORKSPACES = int(os.getenv("MAX_WORKSPACES", "100"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
