"""
Service layer unit tests for the expense ledger.

Tests cover:
- Split rules (payer always included, members only)
- Share rounding
- Balance scenario end to end
- expenseAdded broadcast after commit
- Store failures surfacing as PersistenceError
"""

import pytest
from decimal import Decimal
from uuid import uuid4
from unittest.mock import patch

from django.db import DatabaseError

from apps.expenses.models import Expense
from apps.expenses.services import (
    record_expense,
    list_group_expenses,
    get_expense,
    compute_individual_share,
    InvalidSplitError,
    ExpenseNotFoundError,
)
from apps.groups.models import GroupMembership
from apps.groups.services import (
    get_group_balances,
    delete_group,
    GroupNotFoundError,
    NotMemberError,
    PersistenceError,
)


@pytest.mark.django_db
class TestRecordExpense:
    """Tests for ledger.record_expense"""

    def test_three_way_scenario(self, group, alice, bob, carol):
        """Alice pays 30 split among all three: share 10, B and C owe 10, A owed 20."""
        expense = record_expense(
            group_id=group.id,
            description='Firewood',
            amount=Decimal('30.00'),
            paid_by=alice,
            split_among=[alice.id, bob.id, carol.id],
        )

        assert expense.individual_share == Decimal('10.00')
        assert expense.group == group
        assert set(expense.split_among.all()) == {alice, bob, carol}

        balances = get_group_balances(group_id=group.id, user=bob)
        assert balances == {
            str(alice.id): Decimal('-20.00'),
            str(bob.id): Decimal('10.00'),
            str(carol.id): Decimal('10.00'),
        }

    def test_payer_added_to_split(self, group, alice, bob):
        expense = record_expense(
            group_id=group.id,
            description='Coffee',
            amount=Decimal('8.00'),
            paid_by=alice,
            split_among=[bob.id],
        )

        assert set(expense.split_among.all()) == {alice, bob}
        assert expense.individual_share == Decimal('4.00')

    def test_duplicate_ids_collapse(self, group, alice, bob):
        expense = record_expense(
            group_id=group.id,
            description='Snacks',
            amount=Decimal('9.00'),
            paid_by=alice,
            split_among=[bob.id, str(bob.id), alice.id],
        )

        assert expense.split_among.count() == 2
        assert expense.individual_share == Decimal('4.50')

    def test_share_rounds_half_up(self, group, alice, bob, carol):
        expense = record_expense(
            group_id=group.id,
            description='Pizza',
            amount=Decimal('100.00'),
            paid_by=alice,
            split_among=[bob.id, carol.id],
        )

        assert expense.individual_share == Decimal('33.33')

    def test_empty_split_rejected(self, group, alice):
        with pytest.raises(InvalidSplitError) as exc_info:
            record_expense(
                group_id=group.id,
                description='Nothing',
                amount=Decimal('5.00'),
                paid_by=alice,
                split_among=[],
            )

        assert 'split_among' in exc_info.value.field_errors
        assert not Expense.objects.exists()

    @pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-3.00')])
    def test_non_positive_amount_rejected(self, group, alice, bob, amount):
        with pytest.raises(InvalidSplitError) as exc_info:
            record_expense(
                group_id=group.id,
                description='Refund',
                amount=amount,
                paid_by=alice,
                split_among=[bob.id],
            )

        assert 'amount' in exc_info.value.field_errors

    def test_non_member_in_split_rejected(self, group, alice, outsider):
        with pytest.raises(InvalidSplitError):
            record_expense(
                group_id=group.id,
                description='Gift',
                amount=Decimal('20.00'),
                paid_by=alice,
                split_among=[outsider.id],
            )

        assert not Expense.objects.exists()

    def test_payer_must_be_member(self, group, outsider, alice):
        """Membership is checked before the split is validated."""
        with pytest.raises(NotMemberError):
            record_expense(
                group_id=group.id,
                description='Sneaky',
                amount=Decimal('20.00'),
                paid_by=outsider,
                split_among=[],
            )

    def test_missing_group(self, alice):
        with pytest.raises(GroupNotFoundError):
            record_expense(
                group_id=uuid4(),
                description='Lost',
                amount=Decimal('1.00'),
                paid_by=alice,
                split_among=[alice.id],
            )

    def test_publishes_expense_added(self, group, alice, bob, django_capture_on_commit_callbacks):
        with patch('apps.expenses.services.ledger.publish_to_group') as mock_publish:
            with django_capture_on_commit_callbacks(execute=True):
                expense = record_expense(
                    group_id=group.id,
                    description='Lift passes',
                    amount=Decimal('120.00'),
                    paid_by=alice,
                    split_among=[bob.id],
                )

        mock_publish.assert_called_once()
        group_id, event_name, payload = mock_publish.call_args.args
        assert group_id == group.id
        assert event_name == 'expenseAdded'
        assert payload['id'] == str(expense.id)
        assert payload['amount'] == '120.00'
        assert payload['individualShare'] == '60.00'
        assert payload['paidBy']['name'] == 'Alice'
        assert set(payload['splitAmong']) == {str(alice.id), str(bob.id)}
        assert 'createdAt' in payload

    def test_no_publish_on_failure(self, group, alice, django_capture_on_commit_callbacks):
        with patch('apps.expenses.services.ledger.publish_to_group') as mock_publish:
            with django_capture_on_commit_callbacks(execute=True):
                with pytest.raises(InvalidSplitError):
                    record_expense(
                        group_id=group.id,
                        description='Bad',
                        amount=Decimal('1.00'),
                        paid_by=alice,
                        split_among=[],
                    )

        mock_publish.assert_not_called()

    def test_store_failure(self, group, alice, bob):
        with patch.object(Expense.objects, 'create', side_effect=DatabaseError('locked')):
            with pytest.raises(PersistenceError):
                record_expense(
                    group_id=group.id,
                    description='Boom',
                    amount=Decimal('10.00'),
                    paid_by=alice,
                    split_among=[bob.id],
                )


@pytest.mark.django_db
class TestReadExpenses:
    """Tests for list_group_expenses and get_expense"""

    def test_list_newest_first(self, group, alice, bob):
        first = record_expense(
            group_id=group.id, description='One', amount=Decimal('1.00'),
            paid_by=alice, split_among=[bob.id],
        )
        second = record_expense(
            group_id=group.id, description='Two', amount=Decimal('2.00'),
            paid_by=bob, split_among=[alice.id],
        )

        expenses = list_group_expenses(group_id=group.id, user=alice)

        assert [expense.id for expense in expenses] == [second.id, first.id]

    def test_list_non_member(self, group, outsider):
        with pytest.raises(NotMemberError):
            list_group_expenses(group_id=group.id, user=outsider)

    def test_get_expense(self, group, alice, carol):
        expense = record_expense(
            group_id=group.id, description='Bread', amount=Decimal('3.00'),
            paid_by=alice, split_among=[carol.id],
        )

        assert get_expense(expense_id=expense.id, user=carol) == expense

    def test_get_expense_non_member(self, group, alice, outsider):
        expense = record_expense(
            group_id=group.id, description='Bread', amount=Decimal('3.00'),
            paid_by=alice, split_among=[alice.id],
        )

        with pytest.raises(NotMemberError):
            get_expense(expense_id=expense.id, user=outsider)

    def test_get_missing_expense(self, alice):
        with pytest.raises(ExpenseNotFoundError):
            get_expense(expense_id=uuid4(), user=alice)

    def test_get_expense_malformed_id(self, alice):
        with pytest.raises(ExpenseNotFoundError):
            get_expense(expense_id='not-a-uuid', user=alice)

    def test_orphaned_expense_not_reachable(self, group, alice, bob):
        """Expenses survive group deletion but are no longer served."""
        expense = record_expense(
            group_id=group.id, description='Cabin', amount=Decimal('300.00'),
            paid_by=alice, split_among=[bob.id],
        )

        delete_group(group_id=group.id, user=alice)

        assert Expense.objects.filter(id=expense.id, group__isnull=True).exists()
        with pytest.raises(ExpenseNotFoundError):
            get_expense(expense_id=expense.id, user=alice)

    def test_former_member_keeps_balance(self, group, alice, bob):
        """A member who left still shows up in balances through their expenses."""
        record_expense(
            group_id=group.id, description='Fuel', amount=Decimal('50.00'),
            paid_by=bob, split_among=[alice.id],
        )
        GroupMembership.objects.filter(group=group, user=bob).delete()

        balances = get_group_balances(group_id=group.id, user=alice)

        assert balances[str(bob.id)] == Decimal('-25.00')
        assert balances[str(alice.id)] == Decimal('25.00')


class TestIndividualShare:

    @pytest.mark.parametrize('amount,count,expected', [
        ('30.00', 3, '10.00'),
        ('100.00', 3, '33.33'),
        ('0.05', 2, '0.03'),
        ('10.00', 4, '2.50'),
    ])
    def test_compute_individual_share(self, amount, count, expected):
        assert compute_individual_share(Decimal(amount), count) == Decimal(expected)

    def test_zero_participants(self):
        with pytest.raises(InvalidSplitError):
            compute_individual_share(Decimal('10.00'), 0)
