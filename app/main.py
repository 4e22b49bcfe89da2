"""ASGI entrypoint, served with ``uvicorn app.main:app``."""

from .core.app_factory import create_application

app = create_application()
