import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent
load_dotenv(BASE_DIR / ".env")
PROMPTS_DIR = BASE_DIR / "prompts"

# OpenAI-compatible chat-completions endpoint
AI_API_KEY = os.environ.get("AI_API_KEY", "")
AI_BASE_URL = os.environ.get("AI_BASE_URL", "")

# Model
AI_MODEL = os.environ.get("AI_MODEL", "gpt-4o")

# Agent settings
MAX_TOOL_ROUNDS = int(os.environ.get("MAX_TOOL_ROUNDS", "3"))
COORDINATE_LIMIT = float(os.environ.get("COORDINATE_LIMIT", "2000"))
LAYOUT_MIN_GAP = float(os.environ.get("LAYOUT_MIN_GAP", "40"))
LAYOUT_MAX_ITERATIONS = int(os.environ.get("LAYOUT_MAX_ITERATIONS", "3"))

# Timeouts in seconds
REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "120"))

# Session / server settings
SESSION_TTL_SECONDS = int(os.environ.get("SESSION_TTL_SECONDS", "3600"))
MAX_SESSIONS = int(os.environ.get("MAX_SESSIONS", "100"))
SERVER_HOST = os.environ.get("SERVER_HOST", "127.0.0.1")
SERVER_PORT = int(os.environ.get("SERVER_PORT", "8000"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
