"""
Top-level package for the Helpdesk API.

All functionality lives in submodules under ``app``; import the ASGI
application as ``helpdesk_api.app.main:app``.
"""

__all__ = []
