# inventory/tests/test_api.py

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from inventory.models import Batch, StockMovement
from inventory.services import available_quantity
from inventory.tests.helpers import make_location, make_product, make_user, stock


class InventoryApiTests(APITestCase):
    """
    API contract:
    - every endpoint requires authentication
    - domain errors use the {"error": {code, message, details}} envelope
    - allocation preview never mutates stock
    """

    def setUp(self):
        self.user = make_user()
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

        self.location = make_location()
        self.product = make_product()

    def test_requires_authentication(self):
        anonymous = APIClient()

        res = anonymous.get(reverse("batches-list"))

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_receive_creates_then_tops_up(self):
        payload = {
            "product": str(self.product.pk),
            "location": str(self.location.pk),
            "quantity": 10,
            "unit_cost": "8.00",
            "selling_price": "12.00",
            "expiration_date": "2030-01-31",
            "batch_reference": "LOT-API",
        }

        first = self.client.post(reverse("batches-receive"), payload, format="json")
        second = self.client.post(reverse("batches-receive"), {**payload, "quantity": 5}, format="json")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)
        self.assertTrue(first.data["created"])
        self.assertEqual(second.status_code, status.HTTP_200_OK, second.data)
        self.assertFalse(second.data["created"])
        self.assertEqual(second.data["batch"]["available_quantity"], 15)

        movement = StockMovement.objects.filter(reference_no=first.data["reference_no"]).get()
        self.assertEqual(movement.performed_by_id, self.user.pk)

    def test_receive_duplicate_lot_returns_conflict_envelope(self):
        stock(self.product, self.location, 3, lot="LOT-DUP", unit_cost="8.00")

        res = self.client.post(
            reverse("batches-receive"),
            {
                "product": str(self.product.pk),
                "location": str(self.location.pk),
                "quantity": 1,
                "unit_cost": "9.00",
                "selling_price": "15.00",
                "batch_reference": "LOT-DUP",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "DUPLICATE_LOT")

    def test_sell_returns_cost_of_goods(self):
        b1 = stock(self.product, self.location, 2, lot="LOT-1", unit_cost="10.00")
        stock(self.product, self.location, 5, lot="LOT-2", unit_cost="12.00")

        res = self.client.post(
            reverse("sell"),
            {
                "product": str(self.product.pk),
                "location": str(self.location.pk),
                "quantity": 3,
                "reference_no": "SALE-API",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["reference_no"], "SALE-API")
        self.assertEqual(res.data["cost_of_goods"], "32.00")
        self.assertEqual(res.data["batches"][0]["batch_id"], b1.pk)
        self.assertEqual(res.data["batches"][0]["quantity"], 2)

    def test_sell_shortfall_returns_conflict_envelope(self):
        stock(self.product, self.location, 2, lot="LOT-1")

        res = self.client.post(
            reverse("sell"),
            {"product": str(self.product.pk), "location": str(self.location.pk), "quantity": 3},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "INSUFFICIENT_STOCK")
        self.assertEqual(res.data["error"]["details"]["available"], 2)
        self.assertEqual(available_quantity(product=self.product), 2)

    def test_allocation_preview_does_not_mutate(self):
        b1 = stock(self.product, self.location, 2, lot="LOT-1", unit_cost="10.00")
        stock(self.product, self.location, 2, lot="LOT-2", unit_cost="12.00")

        res = self.client.get(
            reverse("allocation-preview"),
            {"product": str(self.product.pk), "location": str(self.location.pk), "quantity": 6},
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["allocated"], 4)
        self.assertEqual(res.data["shortfall"], 2)
        self.assertEqual(res.data["total_cost"], "44.00")
        self.assertEqual(res.data["lines"][0]["batch_id"], b1.pk)
        self.assertEqual(available_quantity(product=self.product), 4)
        self.assertFalse(StockMovement.objects.filter(movement_type="OUT").exists())

    def test_stock_levels(self):
        stock(self.product, self.location, 4, lot="LOT-1")

        by_product = self.client.get(reverse("stock-levels"), {"product": str(self.product.pk)})
        by_location = self.client.get(reverse("stock-levels"), {"location": str(self.location.pk)})
        missing = self.client.get(reverse("stock-levels"))

        self.assertEqual(by_product.status_code, status.HTTP_200_OK)
        self.assertEqual(by_product.data["quantity"], 4)
        self.assertEqual(by_location.data["products"][0]["quantity"], 4)
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stock_levels_unknown_product_is_not_found(self):
        res = self.client.get(reverse("stock-levels"), {"product": "00000000-0000-0000-0000-000000000000"})

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_adjust_endpoint(self):
        batch = stock(self.product, self.location, 4, lot="LOT-1")

        ok = self.client.post(
            reverse("batches-adjust", args=[batch.pk]),
            {"delta": -1, "reason": "Broken seal"},
            format="json",
        )
        overdraw = self.client.post(
            reverse("batches-adjust", args=[batch.pk]),
            {"delta": -10, "reason": "Cycle count"},
            format="json",
        )

        self.assertEqual(ok.status_code, status.HTTP_200_OK, ok.data)
        self.assertEqual(ok.data["available_quantity"], 3)
        self.assertEqual(overdraw.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Batch.objects.get(pk=batch.pk).available_quantity, 3)

    def test_movements_filter_by_reference(self):
        stock(self.product, self.location, 4, lot="LOT-1")
        self.client.post(
            reverse("sell"),
            {"product": str(self.product.pk), "location": str(self.location.pk), "quantity": 1, "reference_no": "SALE-F"},
            format="json",
        )

        res = self.client.get(reverse("movements-list"), {"reference_no": "SALE-F"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["movement_type"], "OUT")
        self.assertEqual(res.data["results"][0]["quantity"], -1)

    def test_batches_can_be_filtered_to_in_stock(self):
        empty = stock(self.product, self.location, 1, lot="LOT-EMPTY")
        Batch.objects.filter(pk=empty.pk).update(available_quantity=0)
        stock(self.product, self.location, 2, lot="LOT-LIVE")

        res = self.client.get(reverse("batches-list"), {"in_stock": "true", "product": str(self.product.pk)})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([row["batch_reference"] for row in res.data["results"]], ["LOT-LIVE"])
