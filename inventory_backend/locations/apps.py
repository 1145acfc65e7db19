# locations/apps.py

"""
LOCATIONS APP CONFIG

Physical stock-holding places (warehouse, store floor, pharmacy counter).
Reference data only: the inventory engine reads locations, never mutates them.
"""

from django.apps import AppConfig


class LocationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "locations"
    verbose_name = "Stock Locations"
