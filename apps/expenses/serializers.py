from decimal import Decimal
from rest_framework import serializers
from .models import Expense
from apps.accounts.serializers import UserMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class ExpenseCreateSerializer(serializers.Serializer):
    """
    Validate input for recording an expense.

    Fields:
        description (str): What the money was spent on
        amount (Decimal): Positive amount, two decimal places
        split_among (list[UUID]): Members sharing the cost; the payer is
            always included
    """

    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0.01')
    )
    split_among = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        help_text="User IDs to split the expense among. The payer is added automatically."
    )


# =============================================================================
# Output Serializers
# =============================================================================

class ExpenseSerializer(serializers.ModelSerializer):
    """Main serializer for expenses."""

    paid_by = UserMinimalSerializer(read_only=True)
    split_among = UserMinimalSerializer(many=True, read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id',
            'description',
            'amount',
            'paid_by',
            'group',
            'split_among',
            'individual_share',
            'created_at',
        ]
        read_only_fields = fields


class ExpenseListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    paid_by = UserMinimalSerializer(read_only=True)
    split_count = serializers.SerializerMethodField()

    class Meta:
        model = Expense
        fields = [
            'id',
            'description',
            'amount',
            'paid_by',
            'individual_share',
            'split_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_split_count(self, obj):
        return len(obj.split_among.all())
