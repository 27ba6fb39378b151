import os
from pathlib import Path

LOG_DIR = Path(os.environ.get("DS_FIRMWARE_LOG_DIR", Path(__file__).parent / "logs"))
LOG_FILE = LOG_DIR / "session.jsonl"
APP_NAME = "DS firmware CLI"

DEFAULT_OUT = Path("firmware_dust.bin")
DEFAULT_MODEL = "ds"
