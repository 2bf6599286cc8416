"""
FastAPI RESTful API for the My Bookshelf backend.

This module provides a REST API for:
- Registration, login and profile management
- Listing, adding, updating and deleting books on the shelf and wishlist
- Searching the OpenLibrary catalog
- Bearer token authentication
"""
