"""Environment-driven settings for the StudyTrack backend."""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file in the package directory
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

# Key used for pre-login state
ANONYMOUS_USER_ID = "anonymous"

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")

DB_PATH = Path(os.getenv("STUDYTRACK_DB_PATH", str(Path(__file__).parent / "studytrack.db")))


def store_backend() -> str:
    """Which key-value backend to use: memory, sqlite or supabase."""
    explicit = os.getenv("STUDYTRACK_STORE")
    if explicit:
        return explicit.strip().lower()
    return "supabase" if SUPABASE_URL else "sqlite"


def cors_origins() -> List[str]:
    raw = os.getenv("STUDYTRACK_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
