"""Record types shared by the ingestion, consolidation and ledger services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

BILLING_DATE_FORMAT = "%d/%m/%Y"


class UtilityType(Enum):
    ELECTRIC = "electric"
    GAS = "gas"
    WATER = "water"

    @classmethod
    def parse(cls, raw: Optional[str], default: Optional["UtilityType"] = None) -> "UtilityType":
        """Parse a caller-supplied hint. Blank means `default` (electric)."""
        if raw is None or not str(raw).strip():
            return default or cls.ELECTRIC
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown utility type '{raw}' (expected one of: {allowed})")


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"


def parse_billing_date(raw: Optional[str]) -> Optional[date]:
    """Parse a DD/MM/YYYY string. Returns None for missing or invalid dates."""
    if not raw:
        return None
    try:
        return datetime.strptime(str(raw).strip(), BILLING_DATE_FORMAT).date()
    except ValueError:
        return None


def as_json_number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def as_iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class ExtractedFacts:
    """Best-effort facts recovered from one document's text. Any field may be None."""
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    usage: Optional[Decimal] = None
    unit: Optional[str] = None
    subtotal: Optional[Decimal] = None
    rate_per_unit: Optional[Decimal] = None
    provider_name: Optional[str] = None
    account_number: Optional[str] = None

    def billing_period(self) -> Tuple[Optional[date], Optional[date]]:
        return parse_billing_date(self.period_start), parse_billing_date(self.period_end)


@dataclass
class InvoiceRecord:
    user_id: str
    utility_type: str
    billing_period_start: Optional[str] = None
    billing_period_end: Optional[str] = None
    usage: Optional[Decimal] = None
    unit_type: Optional[str] = None
    rate_per_unit: Optional[Decimal] = None
    subtotal: Optional[Decimal] = None
    markup: Optional[Decimal] = None
    total_cost: Optional[Decimal] = None
    provider_name: Optional[str] = None
    account_number: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "InvoiceRecord":
        return cls(
            id=row.get("id"),
            user_id=str(row["user_id"]),
            utility_type=row["utility_type"],
            provider_name=row.get("provider_name"),
            account_number=row.get("account_number"),
            billing_period_start=row.get("billing_period_start"),
            billing_period_end=row.get("billing_period_end"),
            usage=row.get("usage"),
            unit_type=row.get("unit_type"),
            rate_per_unit=row.get("rate_per_unit"),
            subtotal=row.get("subtotal"),
            markup=row.get("markup"),
            total_cost=row.get("total_cost"),
            created_at=row.get("created_at"),
        )


@dataclass
class IngestedInvoiceReport:
    """What ingestion hands back to the caller after a successful insert."""
    invoice_id: Optional[int]
    utility_type: str
    facts: ExtractedFacts
    unit_type: str
    subtotal: Optional[Decimal]
    markup: Optional[Decimal]
    total_cost: Optional[Decimal]
    missing_fields: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        start, end = self.facts.billing_period()
        return {
            "invoice_id": self.invoice_id,
            "utility_type": self.utility_type,
            "provider_name": self.facts.provider_name,
            "account_number": self.facts.account_number,
            "billing_period_start": self.facts.period_start,
            "billing_period_end": self.facts.period_end,
            "period": {"start": as_iso(start), "end": as_iso(end)},
            "usage": as_json_number(self.facts.usage),
            "unit_type": self.unit_type,
            "rate_per_unit": as_json_number(self.facts.rate_per_unit),
            "subtotal": as_json_number(self.subtotal),
            "markup": as_json_number(self.markup),
            "total_cost": as_json_number(self.total_cost),
            "missing_fields": list(self.missing_fields),
        }


@dataclass
class MonthlySums:
    total_usage: Optional[Decimal] = None
    total_cost_before_markup: Optional[Decimal] = None
    total_markup: Optional[Decimal] = None
    total_cost_with_markup: Optional[Decimal] = None


@dataclass
class MonthlyAggregate:
    user_id: str
    year: int
    month: int
    usage_unit: str
    total_usage: Optional[Decimal] = None
    total_cost_before_markup: Optional[Decimal] = None
    total_markup: Optional[Decimal] = None
    total_cost_with_markup: Optional[Decimal] = None
    paid_status: PaymentStatus = PaymentStatus.UNPAID
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MonthlyAggregate":
        return cls(
            id=row.get("id"),
            user_id=str(row["user_id"]),
            year=int(row["year"]),
            month=int(row["month"]),
            usage_unit=row["usage_unit"],
            total_usage=row.get("total_usage"),
            total_cost_before_markup=row.get("total_cost_before_markup"),
            total_markup=row.get("total_markup"),
            total_cost_with_markup=row.get("total_cost_with_markup"),
            paid_status=PaymentStatus(row.get("paid_status") or PaymentStatus.UNPAID.value),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return MonthlyAggregateView.from_aggregate(self).to_dict()


@dataclass(frozen=True)
class MonthlyAggregateView:
    id: Optional[int]
    month: int
    year: int
    total_usage: Optional[Decimal]
    usage_unit: str
    total_cost_before_markup: Optional[Decimal]
    total_markup: Optional[Decimal]
    total_cost_with_markup: Optional[Decimal]
    paid_status: str
    created_at: Optional[datetime]

    @classmethod
    def from_aggregate(cls, agg: MonthlyAggregate) -> "MonthlyAggregateView":
        return cls(
            id=agg.id,
            month=agg.month,
            year=agg.year,
            total_usage=agg.total_usage,
            usage_unit=agg.usage_unit,
            total_cost_before_markup=agg.total_cost_before_markup,
            total_markup=agg.total_markup,
            total_cost_with_markup=agg.total_cost_with_markup,
            paid_status=agg.paid_status.value,
            created_at=agg.created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "month": self.month,
            "year": self.year,
            "total_usage": as_json_number(self.total_usage),
            "usage_unit": self.usage_unit,
            "total_cost_before_markup": as_json_number(self.total_cost_before_markup),
            "total_markup": as_json_number(self.total_markup),
            "total_cost_with_markup": as_json_number(self.total_cost_with_markup),
            "paid_status": self.paid_status,
            "created_at": as_iso(self.created_at),
        }
