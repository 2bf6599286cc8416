"""
API routers: users, catalog search, shelf and wishlist.
"""
