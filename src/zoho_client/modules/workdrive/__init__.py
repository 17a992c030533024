"""
Zoho WorkDrive endpoints.
"""

from . import files, folders

__all__ = ["files", "folders"]
