# inventory/management/commands/verify_stock_ledger.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from inventory.models import Batch
from inventory.services.ledger import verify_ledger
from locations.models import Location
from products.models import Product


class Command(BaseCommand):
    help = "Replay the stock movement ledger and compare it with every batch's available quantity."

    def add_arguments(self, parser):
        parser.add_argument(
            "--product",
            dest="product_id",
            help="Only check batches of this product id (optional)",
        )
        parser.add_argument(
            "--location",
            dest="location_id",
            help="Only check batches at this location id (optional)",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any drift is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))
        product = None
        location = None

        if options.get("product_id"):
            product = Product.objects.filter(pk=options["product_id"]).first()
            if product is None:
                self.stderr.write(self.style.ERROR(f"Unknown product: {options['product_id']}"))
                return self._exit(strict)

        if options.get("location_id"):
            location = Location.objects.filter(pk=options["location_id"]).first()
            if location is None:
                self.stderr.write(self.style.ERROR(f"Unknown location: {options['location_id']}"))
                return self._exit(strict)

        batches = Batch.objects.all()
        if product is not None:
            batches = batches.filter(product=product)
        if location is not None:
            batches = batches.filter(location=location)

        self.stdout.write(self.style.MIGRATE_HEADING("Stock Ledger Verification"))
        self.stdout.write(f"Batches checked: {batches.count()}")
        self.stdout.write("")

        discrepancies = verify_ledger(product=product, location=location)

        for found in discrepancies[:25]:
            self.stderr.write(
                self.style.ERROR(
                    f"[FAIL] batch={found.batch_id} available={found.available_quantity} "
                    f"replayed={found.replayed_quantity} drift={found.drift} "
                    f"first_bad_movement={found.first_bad_movement_id}"
                )
            )

        if discrepancies:
            self.stderr.write(self.style.ERROR(f"LEDGER DRIFT FOUND: {len(discrepancies)} batch(es)"))
        else:
            self.stdout.write(self.style.SUCCESS("[OK] Every batch matches its ledger replay"))

        return self._exit(strict and bool(discrepancies))

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
