import os
import sys
import tempfile
from pathlib import Path

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("LOYALTY_CARD_BACKEND", "memory")
os.environ.setdefault("LOYALTY_CARD_STATE_DIR", tempfile.mkdtemp(prefix="stampcard-test-"))
os.environ.setdefault("LOYALTY_CARD_PAGE_URL", "http://localhost:8000/")
