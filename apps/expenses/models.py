from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import uuid


class Expense(models.Model):
    """Shared expense paid by one member and split among a set of members."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    description = models.CharField(max_length=255)

    # Currency-agnostic amount
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )

    paid_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='expenses_paid'
    )

    # Kept when the group is deleted, the reference is cleared
    group = models.ForeignKey(
        'groups.Group',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses'
    )

    split_among = models.ManyToManyField(
        'accounts.User',
        related_name='shared_expenses'
    )

    # amount / len(split_among), rounded half-up to cents
    individual_share = models.DecimalField(max_digits=12, decimal_places=2)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'expenses'
        indexes = [
            models.Index(fields=['group', 'created_at'], name='expenses_group_idx'),
            models.Index(fields=['paid_by', 'created_at'], name='expenses_payer_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.description} - {self.amount}"
