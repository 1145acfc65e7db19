import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("locations", "0001_initial"),
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Batch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "batch_reference",
                    models.CharField(help_text="Lot identifier from the receiving document", max_length=128),
                ),
                (
                    "available_quantity",
                    models.PositiveIntegerField(default=0, help_text="Remaining quantity (service-managed only)"),
                ),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=12)),
                ("selling_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("expiration_date", models.DateField(blank=True, null=True)),
                ("entry_date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "origin",
                    models.CharField(
                        choices=[("RECEIPT", "Stock Receipt"), ("TRANSFER", "Transfer In"), ("RETURN", "Customer Return")],
                        default="RECEIPT",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                        to="locations.location",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="batches",
                        to="products.product",
                    ),
                ),
                (
                    "source_batch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="derived_batches",
                        to="inventory.batch",
                    ),
                ),
            ],
            options={
                "ordering": ["entry_date", "id"],
                "indexes": [
                    models.Index(fields=["product", "location", "entry_date"], name="batch_fifo_idx"),
                    models.Index(fields=["product", "location", "expiration_date"], name="batch_fefo_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "location", "batch_reference"),
                        name="unique_lot_per_product_location",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("available_quantity__gte", 0)),
                        name="chk_batch_available_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_cost__gte", 0)),
                        name="chk_batch_unit_cost_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("selling_price__gte", 0)),
                        name="chk_batch_selling_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("IN", "Stock In"),
                            ("OUT", "Stock Out"),
                            ("TRANSFER_OUT", "Transfer Out"),
                            ("TRANSFER_IN", "Transfer In"),
                            ("ADJUSTMENT", "Adjustment"),
                            ("RETURN", "Return"),
                        ],
                        max_length=16,
                    ),
                ),
                ("quantity", models.IntegerField(help_text="Signed quantity change applied to the batch")),
                ("remaining_after", models.PositiveIntegerField()),
                ("reference_no", models.CharField(db_index=True, max_length=64)),
                (
                    "unit_cost_snapshot",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Batch unit cost at movement time (immutable).",
                        max_digits=12,
                    ),
                ),
                ("note", models.CharField(blank=True, max_length=255)),
                ("occurred_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="inventory.batch",
                    ),
                ),
                (
                    "location",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                        to="locations.location",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["occurred_at", "id"],
                "indexes": [
                    models.Index(fields=["occurred_at"], name="movement_occurred_idx"),
                    models.Index(fields=["movement_type"], name="movement_type_idx"),
                    models.Index(fields=["product", "occurred_at"], name="movement_product_idx"),
                    models.Index(fields=["batch", "occurred_at"], name="movement_batch_idx"),
                    models.Index(fields=["location", "occurred_at"], name="movement_location_idx"),
                ],
            },
        ),
    ]
