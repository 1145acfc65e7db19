# inventory/tests/test_receiving_adjustments.py

from datetime import date, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from inventory.exceptions import DuplicateLot, InsufficientBatchQuantity, InsufficientStock
from inventory.models import Batch, StockMovement
from inventory.services import (
    adjust_batch,
    available_quantity,
    expire_batch,
    location_stock_summary,
    receive_stock,
    stock_by_location,
    write_off_stock,
)
from inventory.tests.helpers import make_location, make_product, stock


class ReceiveStockTests(TestCase):
    def setUp(self):
        self.location = make_location()
        self.product = make_product()

    def test_new_lot_creates_batch_and_in_movement(self):
        result = receive_stock(
            product=self.product,
            location=self.location,
            quantity=12,
            unit_cost="8.40",
            selling_price="12.00",
            expiration_date="2030-06-30",
            batch_reference="LOT-A",
            reference_no="GRN-100",
        )

        self.assertTrue(result.created)
        self.assertEqual(result.batch.available_quantity, 12)
        self.assertEqual(result.batch.expiration_date, date(2030, 6, 30))
        self.assertEqual(result.movement.movement_type, StockMovement.MovementType.IN)
        self.assertEqual(result.movement.reference_no, "GRN-100")
        self.assertEqual(result.movement.quantity, 12)

    def test_same_lot_again_tops_up(self):
        first = receive_stock(
            product=self.product, location=self.location, quantity=4, unit_cost="8.40", selling_price="12.00", batch_reference="LOT-A"
        )
        second = receive_stock(
            product=self.product, location=self.location, quantity=6, unit_cost="8.40", selling_price="12.00", batch_reference="LOT-A"
        )

        self.assertFalse(second.created)
        self.assertEqual(second.batch.pk, first.batch.pk)
        self.assertEqual(Batch.objects.get(pk=first.batch.pk).available_quantity, 10)
        self.assertEqual(StockMovement.objects.for_batch(first.batch).count(), 2)

    def test_same_lot_with_new_cost_is_duplicate(self):
        receive_stock(
            product=self.product, location=self.location, quantity=4, unit_cost="8.40", selling_price="12.00", batch_reference="LOT-A"
        )

        with self.assertRaises(DuplicateLot):
            receive_stock(
                product=self.product, location=self.location, quantity=1, unit_cost="9.00", selling_price="12.00", batch_reference="LOT-A"
            )

        self.assertEqual(available_quantity(product=self.product), 4)
        self.assertEqual(StockMovement.objects.count(), 1)

    def test_reference_and_lot_are_minted_when_missing(self):
        result = receive_stock(product=self.product, location=self.location, quantity=1, unit_cost="5.00")

        self.assertTrue(result.movement.reference_no.startswith("RCV-"))
        self.assertEqual(result.batch.batch_reference, result.movement.reference_no)

    def test_selling_price_defaults_to_product_price(self):
        result = receive_stock(product=self.product, location=self.location, quantity=1, unit_cost="5.00")

        self.assertEqual(result.batch.selling_price, Decimal("25.00"))

    def test_product_and_location_may_be_given_by_primary_key(self):
        result = receive_stock(product=self.product.pk, location=self.location.pk, quantity=2, unit_cost="5.00")

        self.assertEqual(result.batch.product_id, self.product.pk)
        self.assertEqual(result.batch.selling_price, Decimal("25.00"))
        self.assertEqual(available_quantity(product=self.product, location=self.location), 2)

    def test_non_positive_quantity_is_rejected(self):
        with self.assertRaises(ValidationError):
            receive_stock(product=self.product, location=self.location, quantity=0, unit_cost="5.00")


class AdjustmentTests(TestCase):
    def setUp(self):
        self.location = make_location()
        self.product = make_product()
        self.batch = stock(self.product, self.location, 5, lot="LOT-1")

    def test_positive_adjustment(self):
        movement = adjust_batch(batch=self.batch, delta=3, reason="Found in back room")

        self.assertEqual(movement.quantity, 3)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.ADJUSTMENT)
        self.assertEqual(movement.note, "Found in back room")
        self.assertEqual(movement.remaining_after, 8)
        self.assertEqual(self.batch.available_quantity, 8)

    def test_negative_adjustment(self):
        movement = adjust_batch(batch=self.batch, delta=-2, reason="Cycle count", reference_no="CC-7")

        self.assertEqual(movement.quantity, -2)
        self.assertEqual(movement.reference_no, "CC-7")
        self.assertEqual(Batch.objects.get(pk=self.batch.pk).available_quantity, 3)

    def test_adjustment_cannot_overdraw(self):
        with self.assertRaises(InsufficientBatchQuantity):
            adjust_batch(batch=self.batch, delta=-6, reason="Cycle count")

        self.assertEqual(Batch.objects.get(pk=self.batch.pk).available_quantity, 5)

    def test_zero_delta_or_missing_reason_is_rejected(self):
        with self.assertRaises(ValidationError):
            adjust_batch(batch=self.batch, delta=0, reason="noop")
        with self.assertRaises(ValidationError):
            adjust_batch(batch=self.batch, delta=1, reason="  ")

    def test_write_off_consumes_fifo(self):
        newer = stock(self.product, self.location, 5, lot="LOT-2")

        result = write_off_stock(product=self.product, location=self.location, quantity=7, reason="Water damage")

        self.assertEqual(result.plan.as_pairs(), [(self.batch.pk, 5), (newer.pk, 2)])
        self.assertTrue(all(m.movement_type == "ADJUSTMENT" and m.quantity < 0 for m in result.movements))
        self.assertTrue(result.reference_no.startswith("ADJ-"))

    def test_write_off_shortfall_raises(self):
        with self.assertRaises(InsufficientStock):
            write_off_stock(product=self.product, location=self.location, quantity=6, reason="Lost")

    def test_expire_batch_zeroes_expired_lot(self):
        expired = stock(
            self.product,
            self.location,
            4,
            lot="LOT-OLD",
            expiration_date=timezone.localdate() - timedelta(days=1),
        )

        movement = expire_batch(batch=expired)

        self.assertEqual(movement.quantity, -4)
        self.assertTrue(movement.note.startswith("Expired "))
        self.assertEqual(Batch.objects.get(pk=expired.pk).available_quantity, 0)

    def test_expire_batch_refuses_live_lots(self):
        live = stock(
            self.product,
            self.location,
            4,
            lot="LOT-NEW",
            expiration_date=timezone.localdate() + timedelta(days=30),
        )

        with self.assertRaises(ValidationError):
            expire_batch(batch=live)
        with self.assertRaises(ValidationError):
            expire_batch(batch=self.batch)


class StockLevelTests(TestCase):
    def setUp(self):
        self.store = make_location("Main Store")
        self.warehouse = make_location("Warehouse")
        self.product = make_product()
        stock(self.product, self.store, 3, lot="LOT-1", unit_cost="10.00")
        stock(self.product, self.warehouse, 7, lot="LOT-2", unit_cost="9.50")

    def test_totals_are_derived_from_batches(self):
        self.assertEqual(available_quantity(product=self.product), 10)
        self.assertEqual(available_quantity(product=self.product, location=self.warehouse), 7)
        self.assertEqual(self.product.total_stock, 10)
        self.assertEqual(self.product.stock_at(self.store), 3)

    def test_stock_by_location(self):
        rows = stock_by_location(product=self.product)

        self.assertEqual(
            [(r["location_name"], r["quantity"], r["batches"]) for r in rows],
            [("Main Store", 3, 1), ("Warehouse", 7, 1)],
        )

    def test_location_summary_values_stock_at_cost(self):
        rows = location_stock_summary(location=self.warehouse)

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["quantity"], 7)
        self.assertEqual(Decimal(rows[0]["value"]), Decimal("66.50"))
