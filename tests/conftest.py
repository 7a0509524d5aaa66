import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("INTAKE_DATASTORE_URL", "https://intake-test.supabase.co")
os.environ.setdefault("INTAKE_DATASTORE_SERVICE_KEY", "service_key")
os.environ.setdefault("INTAKE_WRITE_OPERATIONAL_RECORDS", "false")
os.environ.setdefault("INTAKE_LOG_PAYLOADS", "false")
