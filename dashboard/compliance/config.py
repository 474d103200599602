# dashboard/compliance/config.py
import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

API_BASE_URL = os.getenv("COMPLIANCE_API_URL", "http://localhost:5000").rstrip("/")
DEFAULT_REFRESH_MS = int(os.getenv("COMPLIANCE_REFRESH_MS", "300000"))  # 5 minutes
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

INTERVAL_OPTIONS = {
    60000: "1 minute",
    300000: "5 minutes",
    600000: "10 minutes",
    1800000: "30 minutes",
}


def setup_logging():
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
