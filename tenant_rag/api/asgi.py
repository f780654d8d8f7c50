# ASGI entry point
"""
================================================================================
FILE: tenant_rag/api/asgi.py
================================================================================

PURPOSE:
    ASGI entry point for production servers (uvicorn, gunicorn + uvicorn
    workers). Never modify app behavior here; use main.py for app setup.

    uvicorn tenant_rag.api.asgi:app --host $BACKEND_HOST --port $BACKEND_PORT
"""

from .main import app

# Do NOT rename this variable; ASGI servers look for 'app' by default
__all__ = ["app"]
