# products/models/__init__.py
"""
Product reference data. Stock itself lives in inventory.Batch.
"""

from .category import Category
from .product import Product

__all__ = ["Category", "Product"]
