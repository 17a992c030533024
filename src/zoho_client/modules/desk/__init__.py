"""
Zoho Desk endpoints.
"""

from . import tickets

__all__ = ["tickets"]
