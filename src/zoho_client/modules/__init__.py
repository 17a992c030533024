"""
Endpoint modules for Zoho services.

Each module is a table of paths and verbs built on the request builder and
the orchestrating client.
"""
