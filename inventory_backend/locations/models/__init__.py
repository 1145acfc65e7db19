# locations/models/__init__.py

from .location import Location

__all__ = ["Location"]
