# inventory/tests/test_consumption.py

import threading
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import connection
from django.test import TestCase, TransactionTestCase, override_settings, skipUnlessDBFeature

from inventory.exceptions import InsufficientBatchQuantity, InsufficientStock
from inventory.models import Batch, StockMovement
from inventory.services import available_quantity, batch_store, consume_stock, sell_lines, sell_stock
from inventory.services.retry import retry_on_batch_race
from inventory.tests.helpers import make_location, make_product, make_user, stock


class SellStockTests(TestCase):
    def setUp(self):
        self.user = make_user()
        self.location = make_location()
        self.product = make_product()
        self.b1 = stock(self.product, self.location, 5, lot="LOT-1", unit_cost="10.00")
        self.b2 = stock(self.product, self.location, 5, lot="LOT-2", unit_cost="12.00")
        self.b3 = stock(self.product, self.location, 5, lot="LOT-3", unit_cost="14.00")

    def test_sale_consumes_oldest_batches_first(self):
        result = sell_stock(
            product=self.product,
            location=self.location,
            quantity=7,
            reference_no="SALE-001",
            user=self.user,
        )

        self.assertEqual(result.quantity, 7)
        self.assertEqual(result.plan.as_pairs(), [(self.b1.pk, 5), (self.b2.pk, 2)])

        quantities = dict(Batch.objects.values_list("id", "available_quantity"))
        self.assertEqual(quantities[self.b1.pk], 0)
        self.assertEqual(quantities[self.b2.pk], 3)
        self.assertEqual(quantities[self.b3.pk], 5)

    def test_sale_records_one_out_movement_per_batch(self):
        sell_stock(product=self.product, location=self.location, quantity=7, reference_no="SALE-001", user=self.user)

        rows = list(
            StockMovement.objects.for_reference("SALE-001")
            .in_replay_order()
            .values_list("batch_id", "movement_type", "quantity", "performed_by_id")
        )
        self.assertEqual(
            rows,
            [
                (self.b1.pk, "OUT", -5, self.user.pk),
                (self.b2.pk, "OUT", -2, self.user.pk),
            ],
        )

    def test_cost_of_goods_is_reported_per_batch(self):
        result = sell_stock(product=self.product, location=self.location, quantity=7)

        self.assertEqual(result.cost_of_goods, Decimal("74.00"))
        self.assertEqual(
            [(row["batch_id"], row["quantity"], row["cost"]) for row in result.cost_by_batch()],
            [(self.b1.pk, 5, Decimal("50.00")), (self.b2.pk, 2, Decimal("24.00"))],
        )
        self.assertTrue(result.reference_no.startswith("SALE-"))

    def test_quantity_is_conserved(self):
        before = available_quantity(product=self.product, location=self.location)

        result = sell_stock(product=self.product, location=self.location, quantity=9)

        after = available_quantity(product=self.product, location=self.location)
        self.assertEqual(before - after, result.quantity)

    def test_shortfall_changes_nothing(self):
        with self.assertRaises(InsufficientStock) as ctx:
            sell_stock(product=self.product, location=self.location, quantity=16, reference_no="SALE-BIG")

        self.assertEqual(ctx.exception.available, 15)
        self.assertEqual(available_quantity(product=self.product, location=self.location), 15)
        self.assertFalse(StockMovement.objects.for_reference("SALE-BIG").exists())

    def test_zero_quantity_is_a_no_op(self):
        result = sell_stock(product=self.product, location=self.location, quantity=0)

        self.assertEqual(result.movements, [])
        self.assertEqual(result.cost_of_goods, Decimal("0.00"))
        self.assertEqual(StockMovement.objects.filter(movement_type="OUT").count(), 0)

    def test_sequential_sales_never_oversell(self):
        sold = 0
        for _ in range(6):
            try:
                sold += sell_stock(product=self.product, location=self.location, quantity=4).quantity
            except InsufficientStock:
                pass

        self.assertEqual(sold, 12)
        self.assertEqual(available_quantity(product=self.product, location=self.location), 3)
        self.assertFalse(Batch.objects.filter(available_quantity__lt=0).exists())

    def test_consume_stock_rejects_incoming_movement_types(self):
        with self.assertRaises(ValidationError):
            consume_stock(
                product=self.product,
                location=self.location,
                quantity=1,
                reference_no="X-1",
                movement_type=StockMovement.MovementType.IN,
            )


class SellLinesTests(TestCase):
    def setUp(self):
        self.location = make_location()
        self.aspirin = make_product("Aspirin")
        self.syrup = make_product("Cough Syrup")
        stock(self.aspirin, self.location, 10, lot="ASP-1")
        stock(self.syrup, self.location, 2, lot="SYR-1")

    def test_checkout_shares_one_reference(self):
        results = sell_lines(
            location=self.location,
            lines=[
                {"product": self.aspirin, "quantity": 3},
                {"product": self.syrup, "quantity": 2},
            ],
            reference_no="SALE-CHK",
        )

        self.assertEqual([r.quantity for r in results], [3, 2])
        self.assertEqual(StockMovement.objects.for_reference("SALE-CHK").count(), 2)

    def test_any_short_line_aborts_the_whole_checkout(self):
        with self.assertRaises(InsufficientStock):
            sell_lines(
                location=self.location,
                lines=[
                    {"product": self.aspirin, "quantity": 3},
                    {"product": self.syrup, "quantity": 5},
                ],
                reference_no="SALE-CHK",
            )

        self.assertEqual(available_quantity(product=self.aspirin), 10)
        self.assertEqual(available_quantity(product=self.syrup), 2)
        self.assertFalse(StockMovement.objects.for_reference("SALE-CHK").exists())

    def test_empty_checkout_is_rejected(self):
        with self.assertRaises(ValidationError):
            sell_lines(location=self.location, lines=[])


class RetryOnBatchRaceTests(TestCase):
    def setUp(self):
        self.location = make_location()
        self.product = make_product()
        self.batch = stock(self.product, self.location, 5, lot="LOT-1")

    def test_race_is_retried_with_a_fresh_plan(self):
        real_decrement = batch_store.decrement
        calls = []

        def flaky(*, batch, quantity):
            calls.append(quantity)
            if len(calls) == 1:
                raise InsufficientBatchQuantity(batch_id=batch.pk, requested=quantity, available=0)
            return real_decrement(batch=batch, quantity=quantity)

        with mock.patch("inventory.services.batch_store.decrement", side_effect=flaky):
            with self.assertLogs("inventory.services.retry", "WARNING"):
                result = sell_stock(product=self.product, location=self.location, quantity=2)

        self.assertEqual(len(calls), 2)
        self.assertEqual(result.quantity, 2)
        self.assertEqual(available_quantity(product=self.product), 3)
        self.assertEqual(StockMovement.objects.filter(movement_type="OUT").count(), 1)

    @override_settings(INVENTORY_ALLOCATION_RETRIES=2)
    def test_race_that_keeps_losing_is_raised(self):
        attempts = []

        @retry_on_batch_race()
        def always_races():
            attempts.append(1)
            raise InsufficientBatchQuantity(batch_id=1, requested=1, available=0)

        with self.assertRaises(InsufficientBatchQuantity):
            always_races()

        self.assertEqual(len(attempts), 2)

    def test_real_shortfall_is_never_retried(self):
        attempts = []

        @retry_on_batch_race(attempts=5)
        def short():
            attempts.append(1)
            raise InsufficientStock(product_id=1, location_id=1, requested=2, available=1)

        with self.assertRaises(InsufficientStock):
            short()

        self.assertEqual(len(attempts), 1)


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentSaleTests(TransactionTestCase):
    """Two checkouts racing for the same lots must never oversell."""

    def test_concurrent_sales_never_oversell(self):
        location = make_location()
        product = make_product()
        stock(product, location, 5, lot="LOT-1")
        stock(product, location, 5, lot="LOT-2")

        barrier = threading.Barrier(4)
        outcomes = []
        lock = threading.Lock()

        def worker():
            try:
                barrier.wait()
                result = sell_stock(product=product.pk, location=location.pk, quantity=3)
                with lock:
                    outcomes.append(result.quantity)
            except InsufficientStock:
                with lock:
                    outcomes.append(0)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sorted(outcomes), [0, 3, 3, 3])
        self.assertEqual(available_quantity(product=product, location=location), 1)
        self.assertFalse(Batch.objects.filter(available_quantity__lt=0).exists())
