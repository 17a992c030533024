"""
Zoho CRM endpoints.
"""

from . import composite, records

__all__ = ["composite", "records"]
