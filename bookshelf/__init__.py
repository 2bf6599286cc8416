"""
Bookshelf core package.

This package contains:
- Book and collection entry models with derived display fields
- MongoDB storage for users, books and entries
- OpenLibrary catalog client and the canonical book registry
- The listing pipeline and entry mutations shared by shelf and wishlist
- User account operations
"""

__version__ = "1.0.0"
