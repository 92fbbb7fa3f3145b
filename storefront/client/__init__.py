"""Headless client runtime: contexts, the client-only boundary and page components"""

from .boundary import BoundaryState, ClientOnlyBoundary
from .runtime import ClientContext, RenderMode

__all__ = [
    "BoundaryState",
    "ClientOnlyBoundary",
    "ClientContext",
    "RenderMode",
]
