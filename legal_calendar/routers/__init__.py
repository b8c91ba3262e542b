"""
FastAPI routers grouped by audience (health, public, admin auth, admin).

Each module exposes an APIRouter that create_app() includes.
"""
