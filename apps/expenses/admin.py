# ==========================================
# apps/expenses/admin.py
# ==========================================

from django.contrib import admin
from .models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    """
    Admin interface for Expenses.

    Expenses are immutable once recorded, so every field is read-only here.
    Orphans left behind by deleted groups show an empty group column.
    """

    list_display = [
        'description',
        'amount',
        'paid_by',
        'group',
        'split_count',
        'individual_share',
        'created_at',
    ]
    list_filter = ['created_at']
    search_fields = ['description', 'paid_by__email', 'group__name']
    readonly_fields = [
        'description',
        'amount',
        'paid_by',
        'group',
        'split_among',
        'individual_share',
        'created_at',
    ]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def split_count(self, obj):
        """Show number of participants."""
        return obj.split_among.count()
    split_count.short_description = 'Split'

    def has_add_permission(self, request):
        """Expenses are recorded through the ledger service."""
        return False

    def get_queryset(self, request):
        """Optimize query."""
        qs = super().get_queryset(request)
        return qs.select_related('paid_by', 'group')
