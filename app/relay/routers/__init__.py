"""
Routers package for FastAPI endpoints.

Organized by domain:
- assign: PDF / manual extraction and sheet assignment
"""

from . import assign

__all__ = ["assign"]
