"""
Visit Lifecycle Background Worker Runner
Run this as a separate process: python run_lifecycle_worker.py
"""

import logging
import signal
import sys
import threading
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from guidedtours.config import LIFECYCLE_INTERVAL_SECONDS, LOG_LEVEL
from guidedtours.database import init_db
from guidedtours.main import SchedulingEngine

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def run_lifecycle_worker():
    init_db()
    engine = SchedulingEngine()
    engine.load_all()

    stopped = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stopped.set())

    engine.run_immediate_cycle()
    engine.start_periodic(LIFECYCLE_INTERVAL_SECONDS)
    try:
        stopped.wait()
    finally:
        engine.shutdown()


if __name__ == "__main__":
    logger.info("🚀 Starting Visit Lifecycle Background Worker...")
    try:
        run_lifecycle_worker()
    except KeyboardInterrupt:
        logger.info("👋 Lifecycle worker stopped by user")
    except Exception as e:
        logger.error(f"❌ Lifecycle worker crashed: {e}")
        sys.exit(1)
