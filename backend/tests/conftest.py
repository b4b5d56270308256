"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real credentials
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test-fake-key")
os.environ.setdefault("ANTHROPIC_AUTH_TOKEN", "")
os.environ.setdefault("LOG_FORMAT", "text")
