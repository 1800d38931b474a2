from __future__ import annotations

from cafepos.application.dto.responses import MoneyResponse
from cafepos.domain.common.money import Money


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def cents_response(amount_cents: int, currency: str) -> MoneyResponse:
    return MoneyResponse(amountCents=int(amount_cents), currency=currency)
