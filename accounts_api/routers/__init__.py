"""
FastAPI routers grouped by resource.

Each module exposes an APIRouter that app.py includes. Routers only translate
HTTP requests into service calls and service results into responses.
"""
