"""
Pydantic schema definitions for API payloads.

Each domain (users, tickets, chats, blogs, reviews) defines its own
models for request and response bodies.  Field names are camelCase
because they are the JSON keys clients exchange.
"""
