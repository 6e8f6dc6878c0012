# Routes package init
"""
Conduit Backend: API Routes Package
====================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - users.py:     POST /api/users, POST /api/users/login, GET|PUT /api/user
    - profiles.py:  GET /api/profiles/{username}, POST|DELETE .../follow
    - articles.py:  GET /api/articles, GET /api/articles/feed,
                    POST /api/articles, GET|PUT|DELETE /api/articles/{slug},
                    POST|DELETE /api/articles/{slug}/favorite
    - comments.py:  GET|POST /api/articles/{slug}/comments,
                    DELETE /api/articles/{slug}/comments/{id}
    - tags.py:      GET /api/tags
    - health.py:    GET /health

Design Principle:
    Routes stay thin: parse the request, resolve dependencies, call one
    service method, wrap the result. Business rules live in services.
"""
