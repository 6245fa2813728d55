"""
Ledger Store — Append-Only Record Model
=========================================
One row per LedgerRecord handed to the DjangoPersistenceSink.

RULES:
- No deletes, no updates after insert
- Payload is JSON encoded with DjangoJSONEncoder
  (Decimal → string, datetime/date → ISO 8601, UUID → string)
"""

import uuid

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class LedgerRecordRow(models.Model):
    record_id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    record_type = models.CharField(max_length=128)
    source_engine = models.CharField(max_length=64)
    branch_key = models.CharField(max_length=128)
    actor_id = models.CharField(max_length=255, null=True, blank=True)
    payload = models.JSONField(encoder=DjangoJSONEncoder)
    recorded_at = models.DateTimeField()
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "ledger_records"
        ordering = ["recorded_at", "received_at"]
        indexes = [
            models.Index(
                fields=["branch_key", "recorded_at"],
                name="idx_rec_branch_time",
            ),
            models.Index(
                fields=["record_type"],
                name="idx_rec_type",
            ),
        ]

    # ══════════════════════════════════════════════════════════
    # IMMUTABILITY GUARDS
    # ══════════════════════════════════════════════════════════

    def save(self, *args, **kwargs):
        """INSERT only. Persisted ledger records are never updated."""
        if not self._state.adding:
            raise PermissionError(
                "Ledger records are immutable. Cannot update a persisted record."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Ledger records are never deleted.")

    def __str__(self):
        return f"[{self.record_type}] {self.record_id} ({self.branch_key})"
