"""
HTTP layer of the Helpdesk API.

Routes are grouped by version; ``v1.router`` collects the users,
tickets, chats, blogs and reviews endpoints and is mounted under
``/api/v1`` by ``main.create_app``.
"""
