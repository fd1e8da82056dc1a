"""
HTTP API for the MediBook booking backend.
"""

from .dependencies import Services, build_services, create_store
from .server import app, create_app

__all__ = [
    "Services",
    "app",
    "build_services",
    "create_app",
    "create_store",
]
