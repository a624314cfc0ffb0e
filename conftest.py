# conftest.py
# Ensure '<repo root>' is on sys.path so 'import classdesk.*' and
# 'import tests.*' work however pytest is invoked.
import os
from pathlib import Path
import sys

_REPO_ROOT = Path(__file__).resolve().parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

# Pin settings before any classdesk module is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")
