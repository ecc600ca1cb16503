"""Feature modules: each exposes a FastAPI router."""
