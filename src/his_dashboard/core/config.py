
from pathlib import Path
import os
from dotenv import load_dotenv

load_dotenv()

# project paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
DATA_DIR = Path(os.getenv("HIS_DATA_DIR", BASE_DIR / "data"))
LOGS_DIR = DATA_DIR / "logs"
EXPORTS_DIR = DATA_DIR / "exports"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# source columns that must be present before anything is normalized
REQUIRED_COLUMNS = ["MA_LK", "MA_BN", "THANH_TIEN", "KHOA"]

# spreadsheet export
SHEETS_EXPORT_HOST = os.getenv("SHEETS_EXPORT_HOST", "https://docs.google.com").rstrip("/")
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))

# month-over-month alerts
ALERT_GROWTH_THRESHOLD = float(os.getenv("ALERT_GROWTH_THRESHOLD", "0.3"))
DIAGNOSIS_MIN_PREV_VISITS = int(os.getenv("DIAGNOSIS_MIN_PREV_VISITS", "10"))
SERVICE_MIN_PREV_COST = float(os.getenv("SERVICE_MIN_PREV_COST", "1000000"))

# rollup sizes
TOP_DEPARTMENTS = 10
TOP_DIAGNOSES = 20
TOP_SERVICES = 20
TOP_DOCTORS = 20
SERVICE_PIE_SLICES = 6
DOCTOR_PIE_SLICES = 5
MAX_TREND_DIAGNOSES = 5

# Database (optional snapshot of the canonical line items)
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'his_dashboard.db'}")
