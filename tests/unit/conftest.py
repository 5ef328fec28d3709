"""Unit test conftest for setting up test environment."""

import os

# Set minimal required environment variables before importing any indexsync modules
# This keeps Settings deterministic during test collection
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("INDEX_API_KEY", "test-private-api-key")
os.environ.setdefault("INDEX_API_URL", "https://index.test/api/v1/webhooks")
os.environ.setdefault("CMS_URL", "http://cms.test")
os.environ.setdefault("INDEX_MAX_ATTEMPTS", "3")
