import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def mark_existing_approved(apps, schema_editor):
    # Rows recorded before the approval workflow were restocked immediately.
    StockReturn = apps.get_model("returns", "StockReturn")
    StockReturn.objects.update(status="approved")


class Migration(migrations.Migration):

    dependencies = [
        ("returns", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.AddField(
            model_name="stockreturn",
            name="status",
            field=models.CharField(
                choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                db_index=True,
                default="pending",
                max_length=16,
            ),
        ),
        migrations.RunPython(mark_existing_approved, migrations.RunPython.noop),
        migrations.AddField(
            model_name="stockreturn",
            name="approved_by",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="approved_stock_returns",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.AddField(
            model_name="stockreturn",
            name="rejected_by",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="rejected_stock_returns",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.AddField(
            model_name="stockreturn",
            name="approved_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="stockreturn",
            name="rejected_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="stockreturn",
            name="rejection_reason",
            field=models.CharField(blank=True, max_length=255),
        ),
        migrations.AddConstraint(
            model_name="stockreturn",
            constraint=models.CheckConstraint(
                condition=models.Q(models.Q(("status", "rejected"), _negated=True), models.Q(("rejection_reason", ""), _negated=True), _connector="OR"),
                name="chk_return_rejection_has_reason",
            ),
        ),
    ]
