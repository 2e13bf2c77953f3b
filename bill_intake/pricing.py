"""
Markup policy applied to every ingested bill.

The markup is rounded on its own, then the total is rounded again. Multiplying
the subtotal by 1.10 and rounding once gives different answers at the
half-penny boundary, so keep the two steps.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

MONEY_QUANT = Decimal("0.01")
DEFAULT_MARKUP_RATE = Decimal("0.10")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CostBreakdown:
    subtotal: Optional[Decimal]
    markup: Optional[Decimal]
    total: Optional[Decimal]


@dataclass(frozen=True)
class CostPolicy:
    """Flat percentage markup on a bill subtotal."""
    markup_rate: Decimal = DEFAULT_MARKUP_RATE

    def apply(self, subtotal: Optional[Decimal]) -> CostBreakdown:
        """
        Compute markup and total for `subtotal`.

        Markup and total are computed from the subtotal as read; the subtotal
        handed back is rounded to pence like the other two.

        A None subtotal means the amount is unknown; markup and total stay None
        rather than becoming a zero charge.
        """
        if subtotal is None:
            return CostBreakdown(subtotal=None, markup=None, total=None)
        subtotal = Decimal(subtotal)
        if subtotal < 0:
            raise ValueError(f"Subtotal must be non-negative, got {subtotal}")
        markup = round_money(subtotal * self.markup_rate)
        total = round_money(subtotal + markup)
        return CostBreakdown(subtotal=round_money(subtotal), markup=markup, total=total)

    def subtotal_from_rate(self, usage: Optional[Decimal], rate_per_unit: Optional[Decimal]) -> Optional[Decimal]:
        """Fallback subtotal when the bill quotes a unit rate but no amount."""
        if usage is None or rate_per_unit is None:
            return None
        return round_money(Decimal(usage) * Decimal(rate_per_unit))

    @classmethod
    def from_config(cls, cfg) -> "CostPolicy":
        billing_cfg = (cfg or {}).get("billing", {}) if isinstance(cfg, dict) else {}
        rate = billing_cfg.get("markup_rate")
        if rate is None:
            return cls()
        return cls(markup_rate=Decimal(str(rate)))
