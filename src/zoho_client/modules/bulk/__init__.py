"""
Zoho Bulk APIs.
"""

from . import read, write

__all__ = ["read", "write"]
