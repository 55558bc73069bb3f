import logging
import logging.handlers
from pathlib import Path
from his_dashboard.core.config import LOGS_DIR, LOG_LEVEL

DEFAULT_FMT = "%(asctime)s - %(levelname)-5s - %(name)s - %(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"

def setup_logging(level: str = LOG_LEVEL, file_name: str = "his_dashboard.log") -> None:
    if getattr(setup_logging, "_configured", False):
        return  # prevent double-config
    Path(LOGS_DIR).mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level.upper())

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter(DEFAULT_FMT, datefmt=DATE_FMT))
    root.addHandler(ch)

    # Rotating file
    fh = logging.handlers.RotatingFileHandler(
        Path(LOGS_DIR) / file_name, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    fh.setFormatter(logging.Formatter(DEFAULT_FMT, datefmt=DATE_FMT))
    root.addHandler(fh)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    setup_logging._configured = True
