# inventory/tests/test_commands.py

from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from inventory.models import Batch
from inventory.services import sell_stock
from inventory.tests.helpers import make_location, make_product, stock


class VerifyStockLedgerCommandTests(TestCase):
    def setUp(self):
        self.location = make_location()
        self.product = make_product()
        self.batch = stock(self.product, self.location, 6, lot="LOT-1")
        sell_stock(product=self.product, location=self.location, quantity=2)

    def _run(self, *args):
        out, err = StringIO(), StringIO()
        call_command("verify_stock_ledger", *args, stdout=out, stderr=err)
        return out.getvalue(), err.getvalue()

    def test_clean_ledger_passes(self):
        out, err = self._run("--strict")

        self.assertIn("Batches checked: 1", out)
        self.assertIn("[OK]", out)
        self.assertEqual(err, "")

    def test_drift_is_reported(self):
        Batch.objects.filter(pk=self.batch.pk).update(available_quantity=1)

        out, err = self._run()

        self.assertIn(f"[FAIL] batch={self.batch.pk}", err)
        self.assertIn("drift=-3", err)

    def test_strict_mode_fails_on_drift(self):
        Batch.objects.filter(pk=self.batch.pk).update(available_quantity=1)

        with self.assertRaises(SystemExit):
            self._run("--strict")

    def test_unknown_product_is_reported(self):
        out, err = self._run("--product", "00000000-0000-0000-0000-000000000000")

        self.assertIn("Unknown product", err)
