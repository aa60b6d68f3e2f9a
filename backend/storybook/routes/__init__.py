# Routes package init
"""
Storybook Backend - Routes Package
====================================

Route Inventory:
    - stories.py:  /stories/...   (story CRUD, likes, comments)
    - pages.py:    /, /dashboard  (landing and dashboard pages)
    - health.py:   /health        (service health check)

Routes stay thin: read the request, call a service, render or redirect.
"""
