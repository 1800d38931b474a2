from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

_CENT = Decimal("0.01")

# Upper bound for amounts parsed from requests and for order totals.
MAX_AMOUNT_CENTS = 10**12


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(amount_cents=0, currency=currency)

    @classmethod
    def from_decimal(cls, amount: Decimal | int | float | str, currency: str) -> Money:
        """Convert a major-unit amount (e.g. ``4.40``) to minor units, rounding half up."""
        try:
            value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ValueError(f"invalid money amount: {amount!r}") from exc
        cents = int(value * 100)
        if cents > MAX_AMOUNT_CENTS:
            raise ValueError(f"money amount exceeds the maximum of {MAX_AMOUNT_CENTS // 100}")
        return cls(amount_cents=cents, currency=currency)

    def to_decimal(self) -> Decimal:
        return (Decimal(self.amount_cents) / 100).quantize(_CENT)

    def __add__(self, other: Money) -> Money:
        self._ensure_same_currency(other)
        return Money(amount_cents=self.amount_cents + other.amount_cents, currency=self.currency)

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)

    def percent(self, rate: Decimal) -> Money:
        raw = (Decimal(self.amount_cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return Money(amount_cents=int(raw), currency=self.currency)

    def _ensure_same_currency(self, other: Money) -> None:
        if other.currency != self.currency:
            raise ValueError(f"currency mismatch: {self.currency} != {other.currency}")


def sum_money(values: list[Money], currency: str) -> Money:
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total
