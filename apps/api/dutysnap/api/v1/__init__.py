"""
API v1 endpoints package
"""
from .compare import router as compare_router
from .duty import router as duty_router

__all__ = [
    "compare_router",
    "duty_router",
]
