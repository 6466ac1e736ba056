"""Catalog module exposing license types and their document requirements"""

from .router import router

__all__ = ["router"]
