import os
import tempfile
from pathlib import Path

# Settings and the app engine are built at import time -- give them a
# throwaway SQLite database before anything under app/ is imported.
_tmpdir = tempfile.mkdtemp(prefix="tutorlink-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(_tmpdir) / 'app.db'}")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SENDGRID_API_KEY", "")
os.environ.setdefault("PLATFORM_FEE_FRACTION", "0.6")
