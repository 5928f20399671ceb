"""
Testes do Casamento de Transações com Parcelas
==============================================
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from src.api.admin.services.schedules.transaction_matcher import (
    MatchWindow, TransactionMatch, match_transactions, transaction_date,
)
from src.core.utils.enums import LateFeeMode, ScheduleStatus

SERVICE = SimpleNamespace(late_fee_mode=LateFeeMode.PERCENTAGE, late_fee_value=Decimal("5"), late_fee_grace_days=3)
WINDOW = MatchWindow(days_before=5, days_after=30, tolerance=Decimal("0"))


def row(id, due_date, expected="100000", status=ScheduleStatus.PENDING, transaction_id=None):
    return SimpleNamespace(
        id=id, due_date=due_date, expected_amount=Decimal(expected),
        status=status, transaction_id=transaction_id,
    )


def tx(id, amount, timestamp):
    return SimpleNamespace(id=id, amount=Decimal(amount), timestamp=timestamp)


class TestMatchTransactions:

    def test_matches_by_amount_inside_window(self):
        rows = [row(1, date(2024, 1, 10)), row(2, date(2024, 2, 10))]
        transactions = [
            tx(1, "-100000", datetime(2024, 1, 9, 15, 0)),
            tx(2, "100000", datetime(2024, 2, 12, 9, 30)),
            tx(3, "50000", datetime(2024, 1, 10, 10, 0)),
        ]

        matches = match_transactions(rows, SERVICE, transactions, WINDOW)

        assert matches == [
            TransactionMatch(1, 1, Decimal("100000"), date(2024, 1, 9)),
            TransactionMatch(2, 2, Decimal("100000"), date(2024, 2, 12)),
        ]

    def test_late_transaction_may_include_the_fee(self):
        matches = match_transactions(
            [row(1, date(2024, 1, 10))], SERVICE, [tx(9, "105000", datetime(2024, 1, 20))], WINDOW,
        )

        assert matches == [TransactionMatch(1, 9, Decimal("105000"), date(2024, 1, 20))]

    def test_fee_amount_before_grace_does_not_match(self):
        matches = match_transactions(
            [row(1, date(2024, 1, 10))], SERVICE, [tx(9, "105000", datetime(2024, 1, 12))], WINDOW,
        )

        assert matches == []

    def test_outside_window_is_ignored(self):
        transactions = [tx(1, "100000", datetime(2024, 1, 4)), tx(2, "100000", datetime(2024, 2, 10))]

        assert match_transactions([row(1, date(2024, 1, 10))], SERVICE, transactions, WINDOW) == []

    def test_tolerance(self):
        window = MatchWindow(days_before=5, days_after=30, tolerance=Decimal("10"))

        matches = match_transactions([row(1, date(2024, 1, 10))], SERVICE, [tx(1, "99995", datetime(2024, 1, 10))], window)

        assert [m.transaction_id for m in matches] == [1]

    def test_closest_to_due_date_wins(self):
        transactions = [tx(1, "100000", datetime(2024, 1, 6)), tx(2, "100000", datetime(2024, 1, 11))]

        matches = match_transactions([row(1, date(2024, 1, 10))], SERVICE, transactions, WINDOW)

        assert [m.transaction_id for m in matches] == [2]

    def test_transaction_is_used_once(self):
        window = MatchWindow(days_before=30, days_after=30)
        rows = [row(2, date(2024, 2, 10)), row(1, date(2024, 1, 10))]

        matches = match_transactions(rows, SERVICE, [tx(1, "100000", datetime(2024, 1, 25))], window)

        assert [(m.schedule_id, m.transaction_id) for m in matches] == [(1, 1)]

    def test_only_open_unlinked_rows(self):
        rows = [
            row(1, date(2024, 1, 10), status=ScheduleStatus.PAID, transaction_id=5),
            row(2, date(2024, 1, 10), status=ScheduleStatus.SKIPPED),
            row(3, date(2024, 1, 10), transaction_id=6),
        ]

        assert match_transactions(rows, SERVICE, [tx(1, "100000", datetime(2024, 1, 10))], WINDOW) == []

    def test_zero_amount_transactions_are_ignored(self):
        matches = match_transactions(
            [row(1, date(2024, 1, 10), expected="0")], SERVICE, [tx(1, "0", datetime(2024, 1, 10))], WINDOW,
        )

        assert matches == []


class TestTransactionDate:

    def test_naive_timestamp_is_local(self):
        assert transaction_date(datetime(2024, 1, 10, 23, 59)) == date(2024, 1, 10)

    def test_aware_timestamp_uses_local_timezone(self):
        # 02:00 UTC = 23:00 do dia anterior em Santiago (UTC-3 no verão)
        moment = datetime(2024, 1, 10, 2, 0, tzinfo=timezone.utc)

        assert transaction_date(moment, "America/Santiago") == date(2024, 1, 9)
