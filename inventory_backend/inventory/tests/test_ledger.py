# inventory/tests/test_ledger.py

from django.core.exceptions import ValidationError
from django.db.models import F, QuerySet
from django.test import TestCase, TransactionTestCase

from inventory.exceptions import LedgerError
from inventory.models import Batch, StockMovement
from inventory.services import adjust_batch, available_quantity, ledger, sell_stock, write_off_stock
from inventory.tests.helpers import make_location, make_product, stock


class LedgerImmutabilityTests(TestCase):
    """
    GUARANTEES:
    - StockMovement is append-only (no save-after-create, no delete, no bulk update/delete)
    - the stored sign always matches the movement type
    """

    def setUp(self):
        self.location = make_location()
        self.product = make_product()
        self.batch = stock(self.product, self.location, 5, lot="LOT-1")
        self.movement = StockMovement.objects.get(batch=self.batch)

    def test_existing_row_cannot_be_saved_again(self):
        self.movement.note = "edited"
        with self.assertRaises(LedgerError):
            self.movement.save()

    def test_row_cannot_be_deleted(self):
        with self.assertRaises(LedgerError):
            self.movement.delete()

    def test_bulk_update_and_delete_are_blocked(self):
        with self.assertRaises(LedgerError):
            StockMovement.objects.filter(pk=self.movement.pk).update(quantity=99)
        with self.assertRaises(LedgerError):
            StockMovement.objects.all().delete()

        self.assertEqual(StockMovement.objects.get(pk=self.movement.pk).quantity, 5)

    def test_sign_must_match_movement_type(self):
        bad = StockMovement(
            product=self.product,
            location=self.location,
            batch=self.batch,
            movement_type=StockMovement.MovementType.OUT,
            quantity=3,
            remaining_after=5,
            reference_no="SALE-X",
            unit_cost_snapshot=self.batch.unit_cost,
        )
        with self.assertRaises(ValidationError):
            bad.save()

    def test_record_movement_derives_sign_from_type(self):
        movement = ledger.record_movement(
            batch=self.batch,
            movement_type=StockMovement.MovementType.TRANSFER_OUT,
            quantity=2,
            reference_no="TR-1",
        )
        self.assertEqual(movement.quantity, -2)

    def test_zero_quantity_is_rejected(self):
        with self.assertRaises(LedgerError):
            ledger.record_movement(
                batch=self.batch,
                movement_type=StockMovement.MovementType.ADJUSTMENT,
                quantity=0,
                reference_no="ADJ-1",
            )

    def test_receipt_snapshots_cost_and_remaining(self):
        self.assertEqual(self.movement.movement_type, StockMovement.MovementType.IN)
        self.assertEqual(self.movement.quantity, 5)
        self.assertEqual(self.movement.remaining_after, 5)
        self.assertEqual(self.movement.unit_cost_snapshot, self.batch.unit_cost)


class LedgerReplayTests(TestCase):
    def setUp(self):
        self.location = make_location()
        self.product = make_product()

    def test_replay_reproduces_every_batch_after_mixed_operations(self):
        b1 = stock(self.product, self.location, 10, lot="LOT-1")
        b2 = stock(self.product, self.location, 4, lot="LOT-2", unit_cost="11.00")
        stock(self.product, self.location, 3, lot="LOT-1")

        sell_stock(product=self.product, location=self.location, quantity=11)
        adjust_batch(batch=b2, delta=2, reason="Cycle count")
        write_off_stock(product=self.product, location=self.location, quantity=3, reason="Damaged")

        for batch in Batch.objects.filter(pk__in=[b1.pk, b2.pk]):
            self.assertEqual(ledger.replay_batch(batch), batch.available_quantity)
            self.assertIsNone(ledger.verify_batch(batch))

        self.assertEqual(ledger.verify_ledger(), [])
        self.assertEqual(available_quantity(product=self.product, location=self.location), 5)

    def test_remaining_after_tracks_each_step(self):
        batch = stock(self.product, self.location, 6, lot="LOT-1")
        sell_stock(product=self.product, location=self.location, quantity=2)
        sell_stock(product=self.product, location=self.location, quantity=1)

        snapshots = list(
            StockMovement.objects.for_batch(batch).in_replay_order().values_list("remaining_after", flat=True)
        )
        self.assertEqual(snapshots, [6, 4, 3])

    def test_verify_ledger_reports_drift(self):
        batch = stock(self.product, self.location, 5, lot="LOT-1")

        # Out-of-band write that bypasses the services.
        Batch.objects.filter(pk=batch.pk).update(available_quantity=F("available_quantity") + 1)

        with self.assertLogs("inventory.services.ledger", "ERROR"):
            found = ledger.verify_ledger(product=self.product)

        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].batch_id, batch.pk)
        self.assertEqual(found[0].drift, 1)
        self.assertEqual(found[0].replayed_quantity, 5)

    def test_verify_ledger_reports_bad_snapshot_when_total_matches(self):
        batch = stock(self.product, self.location, 6, lot="LOT-1")
        sell_stock(product=self.product, location=self.location, quantity=2)
        receipt = StockMovement.objects.for_batch(batch).in_replay_order().first()

        # Raw queryset: the model's own queryset refuses updates.
        QuerySet(model=StockMovement).filter(pk=receipt.pk).update(remaining_after=7)

        with self.assertLogs("inventory.services.ledger", "ERROR"):
            found = ledger.verify_ledger(product=self.product)

        self.assertEqual(len(found), 1)
        self.assertEqual(found[0].drift, 0)
        self.assertEqual(found[0].first_bad_movement_id, receipt.pk)

    def test_verify_ledger_scopes_by_location(self):
        other = make_location("Warehouse")
        batch = stock(self.product, other, 5, lot="LOT-1")
        Batch.objects.filter(pk=batch.pk).update(available_quantity=0)

        self.assertEqual(ledger.verify_ledger(location=self.location), [])
        self.assertEqual(len(ledger.verify_ledger(location=other)), 1)


class LedgerTransactionTests(TransactionTestCase):
    def test_record_movement_outside_a_transaction_is_rejected(self):
        location = make_location()
        product = make_product()
        batch = stock(product, location, 2, lot="LOT-1")

        with self.assertRaises(LedgerError):
            ledger.record_movement(
                batch=batch,
                movement_type=StockMovement.MovementType.IN,
                quantity=1,
                reference_no="RCV-LOOSE",
            )

        self.assertEqual(StockMovement.objects.filter(reference_no="RCV-LOOSE").count(), 0)
