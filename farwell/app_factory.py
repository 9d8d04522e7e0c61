"""ASGI entry point: ``uvicorn farwell.app_factory:app``."""
from farwell.app import create_app

app = create_app()

__all__ = ["app", "create_app"]
