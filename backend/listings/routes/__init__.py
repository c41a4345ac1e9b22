# Routes package init
"""
Listings Backend — API Routes Package
=======================================

Route Inventory:
    - items.py:   GET  /                  (liveness greeting)
                  POST /items             (submit item + image)
                  GET  /items             (list all items)
                  GET  /items/{id}        (single item)
                  GET  /search?keyword=   (name substring search)
    - images.py:  GET  /image/{name}      (serve stored image)
    - health.py:  GET  /health            (service health check)

Routes stay thin: extract request data, call a service, return a model.
"""
