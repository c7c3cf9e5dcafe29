"""
Unit tests for the pure balance engine. No database needed.
"""

from decimal import Decimal

import pytest

from apps.expenses.services.balance_engine import (
    ExpenseSnapshot,
    compute_balances,
    round_balances,
    round_money,
)


def snapshot(payer, amount, participants):
    return ExpenseSnapshot(payer, Decimal(amount), tuple(participants))


class TestComputeBalances:

    def test_no_expenses_all_zero(self):
        balances = compute_balances(member_ids=['a', 'b'], expenses=[])

        assert balances == {'a': Decimal('0'), 'b': Decimal('0')}

    def test_three_way_split(self):
        """A pays 30 for A, B and C: B and C owe 10, A is owed 20."""
        balances = compute_balances(
            member_ids=['a', 'b', 'c'],
            expenses=[snapshot('a', '30.00', 'abc')],
        )

        assert balances == {'a': Decimal('-20'), 'b': Decimal('10'), 'c': Decimal('10')}

    def test_payer_only_split_is_neutral(self):
        balances = compute_balances(
            member_ids=['a', 'b'],
            expenses=[snapshot('a', '12.00', 'a')],
        )

        assert balances == {'a': Decimal('0'), 'b': Decimal('0')}

    def test_expenses_accumulate(self):
        balances = compute_balances(
            member_ids=['a', 'b'],
            expenses=[
                snapshot('a', '20.00', 'ab'),
                snapshot('b', '6.00', 'ab'),
            ],
        )

        assert balances == {'a': Decimal('-7'), 'b': Decimal('7')}

    def test_former_member_still_listed(self):
        """Ids seen only in expenses get an entry."""
        balances = compute_balances(
            member_ids=['a'],
            expenses=[snapshot('gone', '10.00', ['a', 'gone'])],
        )

        assert balances == {'a': Decimal('5'), 'gone': Decimal('-5')}

    def test_ids_are_stringified(self):
        balances = compute_balances(member_ids=[1, 2], expenses=[snapshot(1, '4', [1, 2])])

        assert set(balances) == {'1', '2'}

    @pytest.mark.parametrize('amount,participants', [
        ('100.00', 'abc'),
        ('0.01', 'abc'),
        ('33.33', 'ab'),
        ('7.77', 'abcd'),
    ])
    def test_balances_sum_to_zero(self, amount, participants):
        balances = compute_balances(
            member_ids=['a', 'b', 'c', 'd'],
            expenses=[snapshot('a', amount, participants)],
        )

        assert abs(sum(balances.values())) < Decimal('0.000001')

    def test_idempotent(self):
        expenses = [snapshot('a', '100.00', 'abc'), snapshot('b', '9.99', 'bc')]

        first = compute_balances(member_ids='abc', expenses=expenses)
        second = compute_balances(member_ids='abc', expenses=expenses)

        assert first == second


class TestRounding:

    @pytest.mark.parametrize('value,expected', [
        ('33.333333', '33.33'),
        ('0.005', '0.01'),
        ('-0.005', '-0.01'),
        ('2.675', '2.68'),
        ('-0.001', '0.00'),
    ])
    def test_round_money(self, value, expected):
        assert round_money(Decimal(value)) == Decimal(expected)

    def test_negative_zero_normalised(self):
        assert str(round_money(Decimal('-0.001'))) == '0.00'

    def test_round_balances(self):
        rounded = round_balances({'a': Decimal('-66.666666'), 'b': Decimal('33.333333')})

        assert rounded == {'a': Decimal('-66.67'), 'b': Decimal('33.33')}
