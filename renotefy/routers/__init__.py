"""
API routers package.
Each router handles a specific domain of endpoints.
"""

from renotefy.routers import ai, auth, notes, uploads

__all__ = [
    "ai",
    "auth",
    "notes",
    "uploads",
]
