"""
Zoho Recruit endpoints.
"""

from . import records

__all__ = ["records"]
