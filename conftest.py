"""Global pytest configuration."""

import os

# Tests run against in-memory SQLite and the deterministic provider
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.pop("OPENROUTER_API_KEY", None)
