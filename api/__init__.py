"""
HTTP layer: app, middleware, dependencies, routers.
"""
