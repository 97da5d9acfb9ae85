"""API routers package."""

from audit_api.routers import auth, files, health, projects

__all__ = [
    "auth",
    "files",
    "health",
    "projects",
]
