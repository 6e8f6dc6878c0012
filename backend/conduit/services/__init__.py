# Services package init
"""
Conduit Backend: Services Layer
================================

What:  Business logic between routes (HTTP) and the database.
How:   Services are stateless singletons; each call receives the request's
       AsyncSession and any app-level collaborator it needs.

Service Inventory:
    - security.py:         TokenService (PyJWT), PasswordHasher (argon2)
    - user_service.py:     register, authenticate, update, lookups
    - profile_service.py:  profiles and follows
    - article_service.py:  listing/feed via conduit.queries, CRUD,
                           favorites, tags
    - comment_service.py:  comments on articles
"""
