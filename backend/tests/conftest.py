from __future__ import annotations

import os

# Settings are read at import time; provide test values before any taskdesk import.
os.environ.setdefault("JWT_SECRET", "taskdesk-test-secret-0123456789-abcdefghijkl")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_AUTO_MIGRATE", "false")
os.environ.setdefault("ENVIRONMENT", "test")
