# Routes package init
"""
PlaceShare Backend — API Routes Package
=========================================

Route Inventory:
    - places.py:  GET/POST/PATCH/DELETE /api/places...
    - users.py:   GET /api/users
    - files.py:   GET /uploads/images/{filename}
    - health.py:  GET /health

Routes stay thin: extract request data, call a service, shape the response.
"""
