import os
from dotenv import load_dotenv

load_dotenv()

# Gemini API Configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")
GEMINI_ALIGN_MODEL = os.getenv("GEMINI_ALIGN_MODEL", "gemini-2.5-flash")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "120"))

# Image style sent with every generation request
IMAGE_STYLE = os.getenv(
    "IMAGE_STYLE",
    "Whiteboard illustration showing a child reaching for food with curiosity glow-lines "
    "and a crossed-out eye icon above. Clean outlines, pastel colors. No shadows, no 3D.",
)

# Batch Configuration
DEFAULT_BATCH_LIMIT = int(os.getenv("DEFAULT_BATCH_LIMIT", "5"))  # images per key before pausing
MAX_GENERATION_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 1.5

# Timeline Configuration (seconds)
MIN_IMAGE_DURATION = 0.8
FALLBACK_IMAGE_DURATION = 3.0  # used when alignment returned nothing for a line
FADE_IN_DURATION = 0.5

# Video Configuration (16:9 landscape)
VIDEO_WIDTH = 1920
VIDEO_HEIGHT = 1080
FPS = 30

# Script format
SCRIPT_DELIMITER = "|"
IMAGE_EXTENSION = ".png"
FILENAME_MAX_LENGTH = 50

# Output directory
OUTPUT_DIR = os.getenv("AUTOMEDIA_OUTPUT_DIR", "output")
