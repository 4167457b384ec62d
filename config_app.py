import os
from pathlib import Path

ROOT = Path(__file__).parent

DB_PATH = os.environ.get("BANDPRINT_DB_PATH", str(ROOT / "fingerprints" / "bandpeak" / "fingerprints.db"))
CONFIG_PATH = os.environ.get("BANDPRINT_CONFIG", str(ROOT / "config" / "bandpeak.yaml"))
TOP_SONGS_ENTROPY = int(os.environ.get("BANDPRINT_TOP_SONGS_ENTROPY", "10"))
MIN_SCORE = int(os.environ.get("BANDPRINT_MIN_SCORE", "1"))
MAX_UPLOAD_MB = 20
