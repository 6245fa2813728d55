import uuid

import django.core.serializers.json
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerRecordRow",
            fields=[
                (
                    "record_id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("record_type", models.CharField(max_length=128)),
                ("source_engine", models.CharField(max_length=64)),
                ("branch_key", models.CharField(max_length=128)),
                ("actor_id", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "payload",
                    models.JSONField(
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                ("recorded_at", models.DateTimeField()),
                ("received_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "ledger_records",
                "ordering": ["recorded_at", "received_at"],
            },
        ),
        migrations.AddIndex(
            model_name="ledgerrecordrow",
            index=models.Index(
                fields=["branch_key", "recorded_at"],
                name="idx_rec_branch_time",
            ),
        ),
        migrations.AddIndex(
            model_name="ledgerrecordrow",
            index=models.Index(
                fields=["record_type"],
                name="idx_rec_type",
            ),
        ),
    ]
