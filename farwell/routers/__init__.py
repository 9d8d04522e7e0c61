"""
FastAPI routers grouped by domain (auth, user, employees).

Each module exposes an APIRouter that app.py mounts under ``/api``.
Routers validate transport details, call one service and translate its
exceptions into the errors from ``farwell.core.errors``.
"""
