"""Tests for the per-player financial ledger."""

import threading
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from tradeflow_backend.game_logic.configuration import (
    ScenarioOverrides,
    build_scenario_configuration,
)
from tradeflow_backend.game_logic.ledger import (
    LOAN_PAYMENT_CATEGORY,
    FinancialLedger,
    rate_credit,
)
from tradeflow_backend.shared.enums import CreditRating, LoanStatus, TransactionType
from tradeflow_backend.shared.errors import EconomyValidationError, InsufficientFundsError


class SteppingClock:
    """Clock that can be moved backwards and forwards by tests."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now


def make_ledger(**overrides: object) -> FinancialLedger:
    """Build a ledger funded with 100 000 unless overridden."""
    config = build_scenario_configuration(ScenarioOverrides(**overrides))
    return FinancialLedger("player-1", config)


def test_income_and_expense_update_cash_and_margin() -> None:
    ledger = make_ledger()

    ledger.record_transaction(TransactionType.INCOME, "trade", 5000, "Sold cargo")
    ledger.record_transaction(TransactionType.EXPENSE, "fuel", 1000, "Refuelled")

    snapshot = ledger.snapshot()
    assert snapshot.cash == Decimal(104_000)
    assert snapshot.total_revenue == Decimal(5000)
    assert snapshot.total_expenses == Decimal(1000)
    assert snapshot.profit_margin == Decimal("0.8")


def test_profit_margin_is_zero_without_revenue() -> None:
    ledger = make_ledger()
    ledger.record_transaction(TransactionType.EXPENSE, "fuel", 10, "Refuelled")

    assert ledger.snapshot().profit_margin == 0


@pytest.mark.parametrize(
    ("amount", "description"),
    [(0, "Nothing"), (-5, "Negative"), (10, ""), (10, "   ")],
)
def test_invalid_transactions_are_rejected(amount: int, description: str) -> None:
    ledger = make_ledger()

    with pytest.raises(EconomyValidationError):
        ledger.record_transaction(TransactionType.INCOME, "trade", amount, description)

    assert ledger.cash == Decimal(100_000)
    assert ledger.records() == ()


def test_records_stay_chronological_when_clock_moves_back() -> None:
    clock = SteppingClock(datetime(2024, 1, 10, tzinfo=UTC))
    ledger = FinancialLedger("player-1", build_scenario_configuration(), clock=clock)

    ledger.record_transaction(TransactionType.INCOME, "trade", 1, "First")
    clock.now -= timedelta(hours=1)
    ledger.record_transaction(TransactionType.INCOME, "trade", 1, "Second")

    first, second = ledger.records()
    assert second.timestamp >= first.timestamp


def test_spend_refuses_to_overdraw() -> None:
    ledger = make_ledger(starting_cash=Decimal(50))

    with pytest.raises(InsufficientFundsError):
        ledger.spend("asset-purchase", 51, "Too expensive")

    assert ledger.cash == Decimal(50)


def test_second_loan_over_ceiling_is_rejected() -> None:
    ledger = make_ledger()

    assert ledger.apply_for_loan(70_000, 90)
    loans_after_first = ledger.snapshot().loans

    assert not ledger.apply_for_loan(100_000, 90)

    snapshot = ledger.snapshot()
    assert snapshot.loans == loans_after_first
    assert snapshot.cash == Decimal(170_000)
    assert snapshot.outstanding_debt == Decimal(70_000)


def test_loan_uses_rate_of_current_credit_rating() -> None:
    ledger = make_ledger()

    assert ledger.apply_for_loan(30_000, 60)

    (loan,) = ledger.snapshot().loans
    assert ledger.credit_rating is CreditRating.BBB
    assert loan.interest_rate == Decimal("0.05")
    assert loan.monthly_payment == Decimal("15750.00")


def test_loan_rejected_when_net_worth_is_not_positive() -> None:
    ledger = make_ledger(starting_cash=Decimal(0))

    assert not ledger.apply_for_loan(1, 30)
    assert ledger.snapshot().loans == ()


def test_invalid_loan_requests_raise() -> None:
    ledger = make_ledger()

    with pytest.raises(EconomyValidationError):
        ledger.apply_for_loan(0, 30)
    with pytest.raises(EconomyValidationError):
        ledger.apply_for_loan(1000, 0)


def test_partial_and_final_payments_close_the_loan() -> None:
    ledger = make_ledger()
    ledger.apply_for_loan(10_000, 30)
    (loan,) = ledger.snapshot().loans

    partial = ledger.make_payment(loan.identifier, 4000)
    assert partial.remaining_balance == Decimal(6000)
    assert partial.status is LoanStatus.ACTIVE

    final = ledger.make_payment(loan.identifier, 9000)
    assert final.remaining_balance == 0
    assert final.status is LoanStatus.PAID

    snapshot = ledger.snapshot()
    assert snapshot.loans == ()
    assert snapshot.closed_loans == (final,)
    assert snapshot.cash == Decimal(100_000)
    payments = [r for r in ledger.records() if r.category == LOAN_PAYMENT_CATEGORY]
    assert [p.amount for p in payments] == [Decimal(4000), Decimal(6000)]


def test_payment_validation() -> None:
    ledger = make_ledger()
    ledger.apply_for_loan(10_000, 30)
    (loan,) = ledger.snapshot().loans

    with pytest.raises(EconomyValidationError):
        ledger.make_payment("loan-missing", 100)
    with pytest.raises(EconomyValidationError):
        ledger.make_payment(loan.identifier, 0)

    assert ledger.loan(loan.identifier).remaining_balance == Decimal(10_000)


def test_payment_requires_cash() -> None:
    ledger = make_ledger()
    ledger.apply_for_loan(10_000, 30)
    (loan,) = ledger.snapshot().loans
    ledger.record_transaction(TransactionType.EXPENSE, "fuel", 109_500, "Big bill")

    with pytest.raises(InsufficientFundsError):
        ledger.make_payment(loan.identifier, 1000)

    assert ledger.loan(loan.identifier).remaining_balance == Decimal(10_000)


def test_disaster_penalty_is_capped() -> None:
    ledger = make_ledger()

    assert ledger.apply_disaster_penalty(Decimal("0.75")) == Decimal("0.5")
    assert ledger.modifiers.disaster_penalty == Decimal("0.5")

    ledger.apply_disaster_penalty(Decimal("0.2"))
    assert ledger.modifiers.disaster_penalty == Decimal("0.2")


def test_specialist_bonus_overwrites_previous_value() -> None:
    ledger = make_ledger()

    ledger.apply_specialist_bonus(2)
    ledger.apply_specialist_bonus(3)

    assert ledger.modifiers.specialist_bonus == Decimal(3)
    with pytest.raises(EconomyValidationError):
        ledger.apply_specialist_bonus(-1)


def test_credit_rating_is_monotonic() -> None:
    ratios = [Decimal(value) / 20 for value in range(21)]
    histories = [Decimal(value) / 20 for value in range(21)]

    for ratio in ratios:
        for history in histories:
            rating = rate_credit(ratio, history)
            assert not rate_credit(ratio + Decimal("0.05"), history).is_better_than(rating)
            assert not rate_credit(ratio, history - Decimal("0.05")).is_better_than(rating)

    assert rate_credit(Decimal(0), Decimal(1)) is CreditRating.AAA
    assert rate_credit(Decimal("0.9"), Decimal(1)) is CreditRating.CCC


def test_defaults_drag_the_credit_rating_down() -> None:
    ledger = make_ledger()
    ledger.apply_for_loan(1000, 30)
    (loan,) = ledger.snapshot().loans

    ledger.mark_loan_defaulted(loan.identifier)

    assert ledger.credit_rating is CreditRating.CCC
    assert ledger.snapshot().closed_loans[0].status is LoanStatus.DEFAULTED


def test_monthly_financials_group_by_category() -> None:
    clock = SteppingClock(datetime(2024, 2, 10, tzinfo=UTC))
    ledger = FinancialLedger("player-1", build_scenario_configuration(), clock=clock)
    ledger.record_transaction(TransactionType.INCOME, "trade", 900, "Sale")
    ledger.record_transaction(TransactionType.EXPENSE, "maintenance", 100, "Repairs")
    ledger.record_transaction(TransactionType.EXPENSE, "fuel", 50, "Fuel")
    clock.now = datetime(2024, 3, 2, tzinfo=UTC)
    ledger.record_transaction(TransactionType.INCOME, "trade", 1, "Next month")

    summary = ledger.update_monthly_financials(datetime(2024, 2, 20, tzinfo=UTC))

    assert summary.month == "2024-02"
    assert summary.revenue == Decimal(900)
    assert summary.expenses == Decimal(150)
    assert summary.maintenance_costs == Decimal(100)
    assert summary.operating_costs == Decimal(50)
    assert ledger.snapshot().monthly_financials == (summary,)


def test_concurrent_transactions_are_serialized() -> None:
    ledger = make_ledger()

    def deposit() -> None:
        for _ in range(200):
            ledger.record_transaction(TransactionType.INCOME, "trade", 1, "Tick")

    threads = [threading.Thread(target=deposit) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert ledger.cash == Decimal(100_800)
    assert len(ledger.records()) == 800
