"""
Top-level router for version 1 of the API.

This router aggregates the domain routers (users, tickets, chats,
blogs, reviews) under a unified prefix.  When a new domain is added,
include its router here.
"""

from fastapi import APIRouter

from .endpoints import blogs, chats, reviews, tickets, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
# The remaining routers declare their full paths ("/tickets", "/chats/...")
# themselves, so no prefix is added here.
router.include_router(tickets.router, tags=["tickets"])
router.include_router(chats.router, tags=["chats"])
router.include_router(blogs.router, tags=["blogs"])
router.include_router(reviews.router, tags=["reviews"])
