"""
API routers.
"""
