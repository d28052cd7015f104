import os
import tempfile
from pathlib import Path

# Must run before anything imports app.db, which binds the engine at import time.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="foundervoice-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'foundervoice.db'}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["FOUNDER_VOICE_AUTH_MODE"] = "token"
os.environ["OPENAI_API_KEY"] = ""
os.environ["TAVILY_API_KEY"] = ""

try:
    from app.db import init_db
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    init_db = None

if init_db is not None:
    init_db()
