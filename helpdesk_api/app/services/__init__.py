"""
Service layer.

Each service encapsulates the business logic of one domain and talks
to the SQLite store through ``core.db``.  Services raise the
exceptions from ``core.exceptions``; endpoints turn them into HTTP
responses.
"""
