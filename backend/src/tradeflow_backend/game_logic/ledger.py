"""Per-player financial ledger: cash, transactions, loans and credit rating.

The ledger is the only component that mutates player finances. Every command
validates its input before touching state and runs under the ledger's
re-entrant lock, so read-modify-write sequences such as loan approval or
payment are serialized per player.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping  # noqa: TC003
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from tradeflow_backend.game_logic.configuration import (
    EconomyConfiguration,
    get_default_economy_configuration,
)
from tradeflow_backend.game_logic.state import EconomyModifiers
from tradeflow_backend.shared.enums import CreditRating, LoanStatus, TransactionType
from tradeflow_backend.shared.errors import (
    EconomyValidationError,
    InsufficientFundsError,
)
from tradeflow_backend.shared.value_objects import Numeric, quantize_money, to_decimal

logger = logging.getLogger(__name__)

LOAN_CATEGORY = "loan"
LOAN_PAYMENT_CATEGORY = "loan-payment"
MAINTENANCE_CATEGORY = "maintenance"
MONTHS_RETAINED = 12
DAYS_PER_MONTH = 30


class CreditTier(BaseModel):
    """Qualification thresholds for a credit rating."""

    model_config = ConfigDict(frozen=True)

    rating: CreditRating
    max_debt_ratio: Decimal
    min_payment_history: Decimal
    interest_rate: Decimal


CREDIT_TIERS: tuple[CreditTier, ...] = (
    CreditTier(
        rating=CreditRating.AAA,
        max_debt_ratio=Decimal("0.1"),
        min_payment_history=Decimal("1.0"),
        interest_rate=Decimal("0.03"),
    ),
    CreditTier(
        rating=CreditRating.AA,
        max_debt_ratio=Decimal("0.2"),
        min_payment_history=Decimal("0.95"),
        interest_rate=Decimal("0.035"),
    ),
    CreditTier(
        rating=CreditRating.A,
        max_debt_ratio=Decimal("0.3"),
        min_payment_history=Decimal("0.9"),
        interest_rate=Decimal("0.04"),
    ),
    CreditTier(
        rating=CreditRating.BBB,
        max_debt_ratio=Decimal("0.4"),
        min_payment_history=Decimal("0.85"),
        interest_rate=Decimal("0.05"),
    ),
    CreditTier(
        rating=CreditRating.BB,
        max_debt_ratio=Decimal("0.5"),
        min_payment_history=Decimal("0.8"),
        interest_rate=Decimal("0.065"),
    ),
    CreditTier(
        rating=CreditRating.B,
        max_debt_ratio=Decimal("0.6"),
        min_payment_history=Decimal("0.75"),
        interest_rate=Decimal("0.08"),
    ),
)
FALLBACK_RATING = CreditRating.CCC
INTEREST_RATES: Mapping[CreditRating, Decimal] = {
    **{tier.rating: tier.interest_rate for tier in CREDIT_TIERS},
    FALLBACK_RATING: Decimal("0.10"),
}


def rate_credit(debt_ratio: Decimal, payment_history: Decimal) -> CreditRating:
    """Return the best tier whose thresholds are satisfied."""
    for tier in CREDIT_TIERS:
        if debt_ratio <= tier.max_debt_ratio and payment_history >= tier.min_payment_history:
            return tier.rating
    return FALLBACK_RATING


class FinancialRecord(BaseModel):
    """Append-only journal entry."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"tx-{uuid4().hex[:12]}")
    record_type: TransactionType
    category: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    timestamp: datetime
    route_id: str | None = None
    asset_id: str | None = None

    @property
    def signed_amount(self) -> Decimal:
        """Return the amount with expenses negated."""
        return self.amount if self.record_type is TransactionType.INCOME else -self.amount


class LoanAccount(BaseModel):
    """Borrowing whose remaining balance only ever decreases."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: f"loan-{uuid4().hex[:12]}")
    principal: Decimal = Field(..., gt=0)
    interest_rate: Decimal = Field(..., ge=0)
    remaining_balance: Decimal = Field(..., ge=0)
    term_days: int = Field(..., gt=0)
    monthly_payment: Decimal
    started_at: datetime
    status: LoanStatus = LoanStatus.ACTIVE


class MonthlyFinancial(BaseModel):
    """Aggregated totals for one calendar month."""

    model_config = ConfigDict(frozen=True)

    month: str
    revenue: Decimal
    expenses: Decimal
    profit: Decimal
    maintenance_costs: Decimal
    loan_payments: Decimal
    operating_costs: Decimal


class PlayerFinancials(BaseModel):
    """Read-only snapshot of a player's financial position."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    cash: Decimal
    net_worth: Decimal
    asset_value: Decimal
    outstanding_debt: Decimal
    credit_rating: CreditRating
    total_revenue: Decimal
    total_expenses: Decimal
    profit_margin: Decimal
    debt_to_asset_ratio: Decimal
    loans: tuple[LoanAccount, ...]
    closed_loans: tuple[LoanAccount, ...]
    monthly_financials: tuple[MonthlyFinancial, ...]
    modifiers: EconomyModifiers


class FinancialLedger:
    """Authoritative financial state of a single player."""

    def __init__(
        self,
        player_id: str,
        config: EconomyConfiguration | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._player_id = player_id
        self._config = config or get_default_economy_configuration()
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._lock = threading.RLock()
        self._cash = quantize_money(self._config.starting_cash)
        self._asset_value = Decimal(0)
        self._total_revenue = Decimal(0)
        self._total_expenses = Decimal(0)
        self._credit_rating = CreditRating.BBB
        self._records: list[FinancialRecord] = []
        self._loans: dict[str, LoanAccount] = {}
        self._closed_loans: list[LoanAccount] = []
        self._monthly: list[MonthlyFinancial] = []
        self._modifiers = EconomyModifiers(
            competition_pressure=self._config.competition_pressure
        )

    @property
    def player_id(self) -> str:
        return self._player_id

    @property
    def cash(self) -> Decimal:
        return self._cash

    @property
    def modifiers(self) -> EconomyModifiers:
        return self._modifiers

    @property
    def credit_rating(self) -> CreditRating:
        return self._credit_rating

    @contextmanager
    def locked(self) -> Iterator[FinancialLedger]:
        """Hold the ledger lock across a multi-step command."""
        with self._lock:
            yield self

    # Derived figures -----------------------------------------------------

    def _outstanding_debt(self) -> Decimal:
        return sum((loan.remaining_balance for loan in self._loans.values()), Decimal(0))

    def _net_worth(self) -> Decimal:
        return self._cash + self._asset_value - self._outstanding_debt()

    def _debt_to_asset_ratio(self) -> Decimal:
        total_assets = self._cash + self._asset_value
        if total_assets <= 0:
            return Decimal(0) if not self._loans else Decimal(1)
        return self._outstanding_debt() / total_assets

    def _profit_margin(self) -> Decimal:
        if self._total_revenue == 0:
            return Decimal(0)
        return (self._total_revenue - self._total_expenses) / self._total_revenue

    def _payment_history(self) -> Decimal:
        paid = sum(1 for loan in self._closed_loans if loan.status is LoanStatus.PAID)
        defaulted = sum(
            1 for loan in self._closed_loans if loan.status is LoanStatus.DEFAULTED
        )
        if paid + defaulted == 0:
            return Decimal(1)
        return Decimal(paid) / Decimal(paid + defaulted)

    # Transactions --------------------------------------------------------

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if self._records and now < self._records[-1].timestamp:
            return self._records[-1].timestamp
        return now

    def record_transaction(
        self,
        kind: TransactionType,
        category: str,
        amount: Numeric,
        description: str,
        *,
        route_id: str | None = None,
        asset_id: str | None = None,
    ) -> FinancialRecord:
        """Append a journal entry and apply it to cash and totals."""
        value = quantize_money(amount)
        if value <= 0:
            msg = f"Transaction amount must be positive, got {value}."
            raise EconomyValidationError(msg)
        if not description.strip():
            msg = "Transaction description must not be blank."
            raise EconomyValidationError(msg)
        if not category.strip():
            msg = "Transaction category must not be blank."
            raise EconomyValidationError(msg)
        with self._lock:
            record = FinancialRecord(
                record_type=kind,
                category=category,
                amount=value,
                description=description,
                timestamp=self._next_timestamp(),
                route_id=route_id,
                asset_id=asset_id,
            )
            self._records.append(record)
            if kind is TransactionType.INCOME:
                self._cash += value
                self._total_revenue += value
            else:
                self._cash -= value
                self._total_expenses += value
            return record

    def spend(
        self,
        category: str,
        amount: Numeric,
        description: str,
        *,
        route_id: str | None = None,
        asset_id: str | None = None,
    ) -> FinancialRecord:
        """Record an expense only when cash covers it."""
        value = quantize_money(amount)
        with self._lock:
            if value > self._cash:
                msg = f"Cannot spend {value}; only {self._cash} available."
                raise InsufficientFundsError(msg)
            return self.record_transaction(
                TransactionType.EXPENSE,
                category,
                value,
                description,
                route_id=route_id,
                asset_id=asset_id,
            )

    def records(
        self, *, since: datetime | None = None, until: datetime | None = None
    ) -> tuple[FinancialRecord, ...]:
        """Return journal entries in ``[since, until)``, oldest first."""
        with self._lock:
            entries = tuple(self._records)
        return tuple(
            record
            for record in entries
            if (since is None or record.timestamp >= since)
            and (until is None or record.timestamp < until)
        )

    def register_asset_value(self, delta: Numeric) -> Decimal:
        """Adjust the book value of owned assets and return the new total."""
        change = quantize_money(delta)
        with self._lock:
            updated = self._asset_value + change
            if updated < 0:
                msg = "Asset value cannot become negative."
                raise EconomyValidationError(msg)
            self._asset_value = updated
            return updated

    # Loans ---------------------------------------------------------------

    def apply_for_loan(self, amount: Numeric, term_days: int) -> bool:
        """Open a loan when the resulting debt ratio stays under the ceiling.

        Returns ``False`` without mutating anything when the request is
        refused.
        """
        principal = quantize_money(amount)
        if principal <= 0:
            msg = f"Loan amount must be positive, got {principal}."
            raise EconomyValidationError(msg)
        if term_days <= 0:
            msg = f"Loan term must be positive, got {term_days}."
            raise EconomyValidationError(msg)
        with self._lock:
            net_worth = self._net_worth()
            projected = self._outstanding_debt() + principal
            if net_worth <= 0 or projected / net_worth > self._config.loan_debt_ratio_ceiling:
                logger.warning(
                    "Rejected loan of %s for %s: debt %s against net worth %s",
                    principal,
                    self._player_id,
                    projected,
                    net_worth,
                )
                return False
            rate = INTEREST_RATES[self._credit_rating]
            months = Decimal(term_days) / DAYS_PER_MONTH
            loan = LoanAccount(
                principal=principal,
                interest_rate=rate,
                remaining_balance=principal,
                term_days=term_days,
                monthly_payment=quantize_money(principal * (1 + rate) / months),
                started_at=self._clock(),
            )
            self._loans[loan.identifier] = loan
            self.record_transaction(
                TransactionType.INCOME,
                LOAN_CATEGORY,
                principal,
                f"Loan approved: {principal} at {rate * 100:.1f}% interest",
            )
            logger.info("Approved loan %s of %s for %s", loan.identifier, principal, self._player_id)
            return True

    def loan(self, loan_id: str) -> LoanAccount:
        """Return the active loan registered under *loan_id*."""
        with self._lock:
            try:
                return self._loans[loan_id]
            except KeyError:
                msg = f"Unknown active loan '{loan_id}'."
                raise EconomyValidationError(msg) from None

    def make_payment(self, loan_id: str, amount: Numeric) -> LoanAccount:
        """Repay part of a loan; overpayment is capped at the remaining balance."""
        requested = quantize_money(amount)
        if requested <= 0:
            msg = f"Payment amount must be positive, got {requested}."
            raise EconomyValidationError(msg)
        with self._lock:
            loan = self.loan(loan_id)
            applied = min(requested, loan.remaining_balance)
            if applied > self._cash:
                msg = f"Cannot pay {applied}; only {self._cash} available."
                raise InsufficientFundsError(msg)
            remaining = loan.remaining_balance - applied
            status = LoanStatus.PAID if remaining == 0 else LoanStatus.ACTIVE
            updated = loan.model_copy(
                update={"remaining_balance": remaining, "status": status}
            )
            self.record_transaction(
                TransactionType.EXPENSE,
                LOAN_PAYMENT_CATEGORY,
                applied,
                f"Loan payment for {loan_id}",
            )
            if status is LoanStatus.PAID:
                del self._loans[loan_id]
                self._closed_loans.append(updated)
                logger.info("Loan %s for %s paid off", loan_id, self._player_id)
            else:
                self._loans[loan_id] = updated
            self.update_credit_rating()
            return updated

    def mark_loan_defaulted(self, loan_id: str) -> LoanAccount:
        """Close an active loan as defaulted."""
        with self._lock:
            loan = self.loan(loan_id)
            defaulted = loan.model_copy(update={"status": LoanStatus.DEFAULTED})
            del self._loans[loan_id]
            self._closed_loans.append(defaulted)
            logger.warning("Loan %s for %s defaulted", loan_id, self._player_id)
            self.update_credit_rating()
            return defaulted

    def update_credit_rating(self) -> CreditRating:
        """Re-derive the credit rating from debt ratio and repayment history."""
        with self._lock:
            self._credit_rating = rate_credit(
                self._debt_to_asset_ratio(), self._payment_history()
            )
            return self._credit_rating

    # Modifiers -----------------------------------------------------------

    def apply_disaster_penalty(self, severity: Numeric) -> Decimal:
        """Set the disaster penalty, capped at the configured maximum."""
        value = to_decimal(severity)
        if value < 0:
            msg = "Disaster penalty must not be negative."
            raise EconomyValidationError(msg)
        penalty = min(self._config.disaster_penalty_cap, value)
        with self._lock:
            self._modifiers = self._modifiers.model_copy(update={"disaster_penalty": penalty})
        return penalty

    def apply_specialist_bonus(self, value: Numeric) -> Decimal:
        """Set the specialist bonus used by route profit calculations."""
        bonus = to_decimal(value)
        if bonus < 0:
            msg = "Specialist bonus must not be negative."
            raise EconomyValidationError(msg)
        with self._lock:
            self._modifiers = self._modifiers.model_copy(update={"specialist_bonus": bonus})
        return bonus

    # Reporting -----------------------------------------------------------

    def update_monthly_financials(self, now: datetime | None = None) -> MonthlyFinancial:
        """Fold the records of the month containing *now* into a summary."""
        moment = now or self._clock()
        month_start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        if month_start.month == 12:
            month_end = month_start.replace(year=month_start.year + 1, month=1)
        else:
            month_end = month_start.replace(month=month_start.month + 1)
        with self._lock:
            entries = self.records(since=month_start, until=month_end)
            revenue = sum(
                (r.amount for r in entries if r.record_type is TransactionType.INCOME),
                Decimal(0),
            )
            expense_entries = [r for r in entries if r.record_type is TransactionType.EXPENSE]
            expenses = sum((r.amount for r in expense_entries), Decimal(0))
            maintenance = sum(
                (r.amount for r in expense_entries if r.category == MAINTENANCE_CATEGORY),
                Decimal(0),
            )
            loan_payments = sum(
                (r.amount for r in expense_entries if r.category == LOAN_PAYMENT_CATEGORY),
                Decimal(0),
            )
            summary = MonthlyFinancial(
                month=f"{moment.year:04d}-{moment.month:02d}",
                revenue=revenue,
                expenses=expenses,
                profit=revenue - expenses,
                maintenance_costs=maintenance,
                loan_payments=loan_payments,
                operating_costs=expenses - maintenance - loan_payments,
            )
            months = [entry for entry in self._monthly if entry.month != summary.month]
            months.append(summary)
            months.sort(key=lambda entry: entry.month)
            self._monthly = months[-MONTHS_RETAINED:]
            return summary

    def snapshot(self) -> PlayerFinancials:
        """Return a consistent, immutable view of the ledger."""
        with self._lock:
            return PlayerFinancials(
                player_id=self._player_id,
                cash=self._cash,
                net_worth=self._net_worth(),
                asset_value=self._asset_value,
                outstanding_debt=self._outstanding_debt(),
                credit_rating=self._credit_rating,
                total_revenue=self._total_revenue,
                total_expenses=self._total_expenses,
                profit_margin=self._profit_margin(),
                debt_to_asset_ratio=self._debt_to_asset_ratio(),
                loans=tuple(self._loans.values()),
                closed_loans=tuple(self._closed_loans),
                monthly_financials=tuple(self._monthly),
                modifiers=self._modifiers,
            )


__all__ = [
    "CREDIT_TIERS",
    "INTEREST_RATES",
    "LOAN_CATEGORY",
    "LOAN_PAYMENT_CATEGORY",
    "MAINTENANCE_CATEGORY",
    "CreditTier",
    "FinancialLedger",
    "FinancialRecord",
    "LoanAccount",
    "MonthlyFinancial",
    "PlayerFinancials",
    "rate_credit",
]
