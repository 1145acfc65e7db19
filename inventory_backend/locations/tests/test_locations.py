# locations/tests/test_locations.py

from django.db import IntegrityError
from django.db.models.deletion import ProtectedError
from django.test import TestCase

from inventory.tests.helpers import make_product, stock
from locations.models import Location


class LocationModelTests(TestCase):
    def test_code_is_unique_when_present(self):
        Location.objects.create(name="Main Store", code="MAIN")

        with self.assertRaises(IntegrityError):
            Location.objects.create(name="Main Store Copy", code="MAIN")

    def test_blank_codes_do_not_collide(self):
        Location.objects.create(name="Kiosk A")
        Location.objects.create(name="Kiosk B", code="")

        self.assertEqual(Location.objects.count(), 2)

    def test_location_with_batches_cannot_be_deleted(self):
        location = Location.objects.create(name="Warehouse", kind=Location.Kind.WAREHOUSE)
        stock(make_product(), location, 1, lot="LOT-1")

        with self.assertRaises(ProtectedError):
            location.delete()

    def test_string_representation(self):
        self.assertEqual(str(Location(name="Branch", code="BR1")), "Branch (BR1)")
        self.assertEqual(str(Location(name="Branch")), "Branch")
