import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.getenv("JUNGLE404_DATA_DIR", str(BASE_DIR / "data")))
DATA_DIR.mkdir(parents=True, exist_ok=True)
EVENTS_CSV = DATA_DIR / "planting_events.csv"
PUBLIC_DIR = BASE_DIR / "public"

PLANTING_EVENTS_ENABLED = os.getenv("PLANTING_EVENTS_ENABLED", "true").lower() == "true"
PROCESSING_DELAY_SECONDS = float(os.getenv("PROCESSING_DELAY_SECONDS", "0.5"))

PROJECT_LABEL = os.getenv("PROJECT_LABEL", "Amazonía Peruana")
PROOF_MESSAGE = os.getenv("PROOF_MESSAGE", "Gracias por plantar un árbol en la Amazonía peruana!")
BASE_LATITUDE = float(os.getenv("BASE_LATITUDE", "-3.465305"))
BASE_LONGITUDE = float(os.getenv("BASE_LONGITUDE", "-73.241997"))
COORDINATE_JITTER = float(os.getenv("COORDINATE_JITTER", "0.05"))

API_PORT = int(os.getenv("API_PORT", "8000"))
SITE_PORT = int(os.getenv("SITE_PORT", "8080"))
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{API_PORT}")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
