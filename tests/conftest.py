import os
import sys
import tempfile
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep tests deterministic: no background timer threads.
os.environ.setdefault("SPRINTLY_DISABLE_WATCHERS", "1")

# Corruption dumps go to a scratch directory instead of <project>/logs.
os.environ.setdefault("SPRINTLY_LOGS_DIR", tempfile.mkdtemp(prefix="sprintly-logs-"))
