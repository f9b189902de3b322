"""
Liquidation engine: pure allocation arithmetic, no database.
"""
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase

from billing.liquidation import (
    PendingDue, advance_periods, allocated_total, liquidate, period_after,
)
from billing.money import to_money, usd_to_local


def due(pk, year, month, usd='25'):
    return PendingDue(id=pk, amount_usd=Decimal(usd), year=year, month=month)


class LiquidateTests(SimpleTestCase):

    def test_settles_due_and_keeps_remainder_as_credit(self):
        result = liquidate(Decimal('1200'), Decimal('0'), [due(1, 2024, 1)],
                           Decimal('1000'), Decimal('40'))
        self.assertEqual([d.id for d in result.dues_settled], [1])
        self.assertEqual(result.periods_prepaid, 0)
        self.assertEqual(result.new_credit_balance, Decimal('200.00'))

    def test_prepays_whole_periods_after_dues(self):
        result = liquidate(Decimal('2200'), Decimal('0'), [due(1, 2024, 1)],
                           Decimal('1000'), Decimal('40'))
        self.assertEqual(len(result.dues_settled), 1)
        self.assertEqual(result.periods_prepaid, 1)
        self.assertEqual(result.new_credit_balance, Decimal('200.00'))

    def test_partial_funds_leave_later_due_pending(self):
        dues = [due(1, 2024, 1), due(2, 2024, 2)]
        result = liquidate(Decimal('1000'), Decimal('0'), dues, Decimal('1000'), Decimal('40'))
        self.assertEqual([d.id for d in result.dues_settled], [1])
        self.assertEqual(result.periods_prepaid, 0)
        self.assertEqual(result.new_credit_balance, Decimal('0.00'))

    def test_oldest_period_first_regardless_of_input_order(self):
        dues = [due('jan', 2024, 1), due('mar', 2024, 3), due('feb', 2024, 2)]
        result = liquidate(Decimal('2000'), Decimal('0'), dues, Decimal('0'), Decimal('40'))
        self.assertEqual([d.id for d in result.dues_settled], ['jan', 'feb'])

    def test_stops_at_first_unaffordable_due(self):
        dues = [due(1, 2023, 12, usd='100'), due(2, 2024, 1, usd='10')]
        result = liquidate(Decimal('1000'), Decimal('0'), dues, Decimal('0'), Decimal('40'))
        self.assertEqual(result.dues_settled, ())
        self.assertEqual(result.new_credit_balance, Decimal('1000.00'))

    def test_prior_credit_counts_as_available(self):
        result = liquidate(Decimal('0'), Decimal('1000'), [due(1, 2024, 1)],
                           Decimal('1000'), Decimal('40'))
        self.assertEqual(len(result.dues_settled), 1)
        self.assertEqual(result.new_credit_balance, Decimal('0.00'))

    def test_zero_fee_disables_prepayment(self):
        result = liquidate(Decimal('5000'), Decimal('0'), [], Decimal('0'), Decimal('40'))
        self.assertEqual(result.periods_prepaid, 0)
        self.assertEqual(result.new_credit_balance, Decimal('5000.00'))

    def test_compares_at_cents(self):
        # 25 USD at 40.1234 is 1003.085, rounded half-up to 1003.09
        result = liquidate(Decimal('1003.09'), Decimal('0'), [due(1, 2024, 1)],
                           Decimal('0'), Decimal('40.1234'))
        self.assertEqual(len(result.dues_settled), 1)
        self.assertEqual(result.new_credit_balance, Decimal('0.00'))

    def test_negative_input_rejected(self):
        with self.assertRaises(ValueError):
            liquidate(Decimal('-1'), Decimal('0'), [], Decimal('0'), Decimal('40'))

    def test_conservation(self):
        rate = Decimal('36.5512')
        fee_local = usd_to_local('25', rate)
        dues = [due(1, 2024, 1), due(2, 2024, 2, usd='30.10'), due(3, 2024, 3, usd='12.34')]
        for received in ('0', '913.78', '1500', '2999.99', '10000', '123456.78'):
            for credit in ('0', '0.01', '450.5'):
                result = liquidate(Decimal(received), Decimal(credit), dues, fee_local, rate)
                self.assertEqual(
                    allocated_total(result, rate, fee_local),
                    to_money(received) + to_money(credit),
                    msg=f'received={received} credit={credit}',
                )


class AdvancePeriodTests(SimpleTestCase):
    p1 = ('Calle 1', 'Casa 1')
    p2 = ('Calle 2', 'Casa 7')

    def test_period_after_wraps_year(self):
        self.assertEqual(period_after(2024, 12), (2025, 1))
        self.assertEqual(period_after(2024, 5), (2024, 6))

    def test_starts_after_latest_paid_period(self):
        slots = advance_periods([self.p1], 2, set(), {self.p1: (2024, 1)}, date(2030, 1, 1))
        self.assertEqual(slots, [('Calle 1', 'Casa 1', 2024, 2), ('Calle 1', 'Casa 1', 2024, 3)])

    def test_starts_at_current_month_without_history(self):
        slots = advance_periods([self.p1], 1, set(), {}, date(2024, 9, 20))
        self.assertEqual(slots, [('Calle 1', 'Casa 1', 2024, 9)])

    def test_skips_occupied_periods(self):
        occupied = {('Calle 1', 'Casa 1', 2024, 3)}
        slots = advance_periods([self.p1], 2, occupied, {self.p1: (2024, 1)}, date(2030, 1, 1))
        self.assertEqual(slots, [('Calle 1', 'Casa 1', 2024, 2), ('Calle 1', 'Casa 1', 2024, 4)])

    def test_round_robin_over_properties(self):
        latest = {self.p1: (2024, 1), self.p2: (2024, 3)}
        slots = advance_periods([self.p1, self.p2], 3, set(), latest, date(2030, 1, 1))
        self.assertEqual(slots, [
            ('Calle 1', 'Casa 1', 2024, 2),
            ('Calle 2', 'Casa 7', 2024, 4),
            ('Calle 1', 'Casa 1', 2024, 3),
        ])

    def test_nothing_without_properties(self):
        self.assertEqual(advance_periods([], 3, set(), {}, date(2024, 1, 1)), [])
