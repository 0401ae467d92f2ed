"""
Application package.

The project is organised by layer: ``core`` (configuration, logging,
storage, security, errors), ``schemas`` (request and response models),
``services`` (business logic per domain) and ``api`` (versioned
routers).  Each domain (users, tickets, chats, blogs, reviews) has a
schema module, a service and an endpoint module.
"""
