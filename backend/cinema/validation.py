"""
Request boundary: JSON payloads are parsed once into typed, immutable
request values before any service sees them. Every problem raises
ValidationError (400) naming the offending field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .errors import ValidationError
from .models.discounts import DISCOUNT_TYPES, MAX_PERCENT_BPS
from .models.inventory import ADJUSTMENT_REASONS
from .models.sales import PAYMENT_METHODS
from .models.screenings import SESSION_STATUSES
from .time_utils import parse_iso_datetime


# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

CPF_PATTERN = re.compile(r"^\d{11}$")
INT_PATTERN = re.compile(r"^-?\d+$")


def _payload(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def _int(payload: dict, key: str, *, required: bool = True, minimum: int | None = None, maximum: int | None = None) -> int | None:
    value = payload.get(key)
    if value is None:
        if required:
            raise ValidationError(f"{key} is required")
        return None
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, str):
        stripped = value.strip()
        if not INT_PATTERN.match(stripped):
            raise ValidationError(f"{key} must be an integer")
        value = int(stripped)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{key} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{key} cannot exceed {maximum}")
    return value


def _str(payload: dict, key: str, *, required: bool = True, max_length: int | None = None) -> str | None:
    value = payload.get(key)
    if value is None:
        if required:
            raise ValidationError(f"{key} is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if not value:
        if required:
            raise ValidationError(f"{key} cannot be blank")
        return None
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value


def _cpf(payload: dict, key: str, *, required: bool = False) -> str | None:
    value = _str(payload, key, required=required, max_length=11)
    if value is not None and not CPF_PATTERN.match(value):
        raise ValidationError(f"{key} must be 11 digits")
    return value


def _datetime(payload: dict, key: str) -> datetime:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    try:
        dt = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    if dt is None:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")
    return dt


def _optional_datetime(payload: dict, key: str) -> datetime | None:
    if payload.get(key) is None:
        return None
    return _datetime(payload, key)


def _bool(payload: dict, key: str) -> bool | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean")
    return value


def _choice(payload: dict, key: str, choices, *, required: bool = True) -> str | None:
    value = _str(payload, key, required=required)
    if value is None:
        return None
    value = value.upper()
    if value not in choices:
        raise ValidationError(f"{key} must be one of {', '.join(choices)}")
    return value


@dataclass(frozen=True)
class ReserveSeatsRequest:
    session_id: int
    seat_codes: tuple[str, ...]
    reservation_token: str

    @classmethod
    def from_payload(cls, payload: Any) -> "ReserveSeatsRequest":
        data = _payload(payload)
        seat_codes = data.get("seat_codes")
        if not isinstance(seat_codes, list) or not seat_codes:
            raise ValidationError("seat_codes must be a non-empty list")
        codes = []
        for code in seat_codes:
            if not isinstance(code, str) or not code.strip() or len(code.strip()) > 10:
                raise ValidationError("seat_codes must contain seat codes of up to 10 characters")
            codes.append(code.strip().upper())
        return cls(
            session_id=_int(data, "session_id", minimum=1),
            seat_codes=tuple(codes),
            reservation_token=_str(data, "reservation_token", max_length=100),
        )


@dataclass(frozen=True)
class ReleaseReservationRequest:
    reservation_token: str

    @classmethod
    def from_payload(cls, payload: Any) -> "ReleaseReservationRequest":
        data = _payload(payload)
        return cls(reservation_token=_str(data, "reservation_token", max_length=100))


@dataclass(frozen=True)
class CreateSaleRequest:
    buyer_cpf: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateSaleRequest":
        data = _payload(payload)
        return cls(buyer_cpf=_cpf(data, "buyer_cpf"))


@dataclass(frozen=True)
class TicketItemInput:
    """A ticket-to-be: one seat of one session."""
    session_id: int
    seat_code: str
    reservation_token: str | None = None
    unit_price_cents: int | None = None
    description: str | None = None
    quantity: int = 1


@dataclass(frozen=True)
class ProductItemInput:
    """An inventory item sold by sku; price comes from the catalog."""
    sku: str
    quantity: int = 1
    description: str | None = None


def parse_sale_item(payload: Any) -> TicketItemInput | ProductItemInput:
    data = _payload(payload)
    kind = _choice(data, "kind", ("TICKET", "PRODUCT"))
    description = _str(data, "description", required=False, max_length=200)

    if kind == "TICKET":
        quantity = _int(data, "quantity", required=False)
        if quantity not in (None, 1):
            raise ValidationError("quantity must be 1 for ticket items")
        seat_code = _str(data, "seat_code", max_length=10)
        return TicketItemInput(
            session_id=_int(data, "session_id", minimum=1),
            seat_code=seat_code.upper(),
            reservation_token=_str(data, "reservation_token", required=False, max_length=100),
            unit_price_cents=_int(data, "unit_price_cents", required=False, minimum=0, maximum=MAX_PRICE_CENTS),
            description=description,
        )

    return ProductItemInput(
        sku=_str(data, "sku", max_length=50).upper(),
        quantity=_int(data, "quantity", minimum=1),
        description=description,
    )


@dataclass(frozen=True)
class PaymentInput:
    method: str
    amount_cents: int
    auth_code: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "PaymentInput":
        data = _payload(payload)
        return cls(
            method=_choice(data, "method", PAYMENT_METHODS),
            amount_cents=_int(data, "amount_cents", minimum=1, maximum=MAX_PRICE_CENTS),
            auth_code=_str(data, "auth_code", required=False, max_length=100),
        )


def parse_payments(payload: Any) -> list[PaymentInput]:
    data = _payload(payload)
    payments = data.get("payments", [])
    if not isinstance(payments, list):
        raise ValidationError("payments must be a list")
    return [PaymentInput.from_payload(p) for p in payments]


@dataclass(frozen=True)
class ApplyDiscountRequest:
    code: str

    @classmethod
    def from_payload(cls, payload: Any) -> "ApplyDiscountRequest":
        data = _payload(payload)
        return cls(code=_str(data, "code", max_length=50).upper())


@dataclass(frozen=True)
class PreviewDiscountRequest:
    code: str
    sub_total_cents: int
    buyer_cpf: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "PreviewDiscountRequest":
        data = _payload(payload)
        return cls(
            code=_str(data, "code", max_length=50).upper(),
            sub_total_cents=_int(data, "sub_total_cents", minimum=0),
            buyer_cpf=_cpf(data, "buyer_cpf"),
        )


@dataclass(frozen=True)
class DiscountCodeInput:
    code: str
    discount_type: str
    discount_value: int
    valid_from: datetime
    valid_to: datetime
    description: str | None = None
    max_uses: int | None = None
    cpf_range_start: str | None = None
    cpf_range_end: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "DiscountCodeInput":
        data = _payload(payload)
        discount_type = _choice(data, "discount_type", DISCOUNT_TYPES)
        value = _int(data, "discount_value", minimum=0)
        if discount_type == "PERCENT" and value > MAX_PERCENT_BPS:
            raise ValidationError("Percent discount cannot exceed 100% (10000 basis points)")

        valid_from = _datetime(data, "valid_from")
        valid_to = _datetime(data, "valid_to")
        if valid_to <= valid_from:
            raise ValidationError("valid_to must be after valid_from")

        range_start = _cpf(data, "cpf_range_start")
        range_end = _cpf(data, "cpf_range_end")
        if (range_start is None) != (range_end is None):
            raise ValidationError("cpf_range_start and cpf_range_end must be provided together")
        if range_start is not None and range_start > range_end:
            raise ValidationError("cpf_range_start must not be greater than cpf_range_end")

        return cls(
            code=_str(data, "code", max_length=50).upper(),
            discount_type=discount_type,
            discount_value=value,
            valid_from=valid_from,
            valid_to=valid_to,
            description=_str(data, "description", required=False, max_length=200),
            max_uses=_int(data, "max_uses", required=False, minimum=1),
            cpf_range_start=range_start,
            cpf_range_end=range_end,
        )


@dataclass(frozen=True)
class DiscountCodeUpdate:
    """Partial edit of a code. max_uses sent as null lifts the cap (clear_max_uses)."""
    description: str | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    max_uses: int | None = None
    clear_max_uses: bool = False
    is_active: bool | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "DiscountCodeUpdate":
        data = _payload(payload)
        valid_from = _optional_datetime(data, "valid_from")
        valid_to = _optional_datetime(data, "valid_to")
        if valid_from and valid_to and valid_to <= valid_from:
            raise ValidationError("valid_to must be after valid_from")
        return cls(
            description=_str(data, "description", required=False, max_length=200),
            valid_from=valid_from,
            valid_to=valid_to,
            max_uses=_int(data, "max_uses", required=False, minimum=1),
            clear_max_uses="max_uses" in data and data["max_uses"] is None,
            is_active=_bool(data, "is_active"),
        )


@dataclass(frozen=True)
class SessionInput:
    movie_id: int
    room_id: int
    start_time: datetime
    end_time: datetime
    base_price_cents: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SessionInput":
        data = _payload(payload)
        start_time = _datetime(data, "start_time")
        end_time = _datetime(data, "end_time")
        if end_time <= start_time:
            raise ValidationError("end_time must be after start_time")
        return cls(
            movie_id=_int(data, "movie_id", minimum=1),
            room_id=_int(data, "room_id", minimum=1),
            start_time=start_time,
            end_time=end_time,
            base_price_cents=_int(data, "base_price_cents", required=False, minimum=0, maximum=MAX_PRICE_CENTS),
        )


@dataclass(frozen=True)
class SessionStatusRequest:
    status: str

    @classmethod
    def from_payload(cls, payload: Any) -> "SessionStatusRequest":
        return cls(status=_choice(_payload(payload), "status", SESSION_STATUSES))


@dataclass(frozen=True)
class SellTicketRequest:
    session_id: int
    seat_code: str
    price_cents: int | None = None
    reservation_token: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SellTicketRequest":
        data = _payload(payload)
        return cls(
            session_id=_int(data, "session_id", minimum=1),
            seat_code=_str(data, "seat_code", max_length=10).upper(),
            price_cents=_int(data, "price_cents", required=False, minimum=0, maximum=MAX_PRICE_CENTS),
            reservation_token=_str(data, "reservation_token", required=False, max_length=100),
        )


@dataclass(frozen=True)
class ReasonRequest:
    reason: str

    @classmethod
    def from_payload(cls, payload: Any) -> "ReasonRequest":
        return cls(reason=_str(_payload(payload), "reason", max_length=500))


@dataclass(frozen=True)
class InventoryItemInput:
    sku: str
    name: str
    unit_price_cents: int
    qty_on_hand: int = 0
    reorder_level: int = 0
    barcode: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "InventoryItemInput":
        data = _payload(payload)
        return cls(
            sku=_str(data, "sku", max_length=50).upper(),
            name=_str(data, "name", max_length=200),
            unit_price_cents=_int(data, "unit_price_cents", minimum=0, maximum=MAX_PRICE_CENTS),
            qty_on_hand=_int(data, "qty_on_hand", required=False, minimum=0) or 0,
            reorder_level=_int(data, "reorder_level", required=False, minimum=0) or 0,
            barcode=_str(data, "barcode", required=False, max_length=50),
        )


@dataclass(frozen=True)
class InventoryAdjustmentInput:
    """Manual stock correction; delta is signed (negative removes stock)."""
    delta: int
    reason: str
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "InventoryAdjustmentInput":
        data = _payload(payload)
        delta = _int(data, "delta")
        if delta == 0:
            raise ValidationError("delta cannot be zero")
        return cls(
            delta=delta,
            reason=_choice(data, "reason", ADJUSTMENT_REASONS),
            notes=_str(data, "notes", required=False, max_length=500),
        )
