import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./guidedtours.db")

# Lifecycle scheduler cadence (seconds between visit-state passes)
LIFECYCLE_INTERVAL_SECONDS = float(os.getenv("LIFECYCLE_INTERVAL_SECONDS", "5"))

# Threads in the shared background pool used for immediate cycles and async saves
WORKER_POOL_SIZE = int(os.getenv("WORKER_POOL_SIZE", "4"))

# Volunteers declare availability from the 1st up to this day of the month
AVAILABILITY_COLLECTION_LAST_DAY = int(os.getenv("AVAILABILITY_COLLECTION_LAST_DAY", "15"))

# Default capacity assigned to newly planned visits
MAX_PEOPLE_PER_VISIT = int(os.getenv("MAX_PEOPLE_PER_VISIT", "10"))

# Redis (only needed when the lifecycle passes run under the arq worker)
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
