"""
Discount Evaluator

Checks run in a fixed order, each with its own failure:
1. code exists for the company             -> NotFoundError
   (code is active                          -> InvalidStateError)
2. now within [valid_from, valid_to]       -> InvalidStateError
3. usage cap not reached                   -> InvalidStateError
4. buyer CPF present if code targets CPFs  -> InvalidStateError
5. buyer CPF inside the targeted range     -> InvalidStateError
6. code not yet applied to this sale       -> ConflictError

apply() runs the checks and the write in one transaction with the sale
and the code row locked, so two requests cannot both pass the usage check.
remove() takes an applied code back off an OPEN sale.

Usage counting: with DISCOUNT_USAGE_COUNTED_AT="FINALIZE" (default) a use
is consumed only when the sale is finalized, so abandoned carts never burn
scarce codes. "APPLY" consumes the use at application time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..models import DiscountCode, SaleDiscount
from ..time_utils import to_utc_z, utcnow
from ..validation import DiscountCodeInput, DiscountCodeUpdate
from .concurrency import lock_for_update, run_with_retry
from .sales_service import SaleAggregate, SaleTotals, require_open


USAGE_AT_FINALIZE = "FINALIZE"
USAGE_AT_APPLY = "APPLY"
USAGE_COUNTING_MODES = (USAGE_AT_FINALIZE, USAGE_AT_APPLY)


def usage_mode(value) -> str:
    """Normalize a DISCOUNT_USAGE_COUNTED_AT value; anything but FINALIZE or APPLY is rejected."""
    mode = str(value or "").strip().upper()
    if mode not in USAGE_COUNTING_MODES:
        raise ValueError(
            f"DISCOUNT_USAGE_COUNTED_AT must be one of {', '.join(USAGE_COUNTING_MODES)}, got {value!r}"
        )
    return mode


@dataclass(frozen=True)
class DiscountApplication:
    code: str
    discount_amount_cents: int
    totals: SaleTotals

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "discount_amount_cents": self.discount_amount_cents,
            **self.totals.to_dict(),
        }


def check_window(discount: DiscountCode, now: datetime) -> None:
    if now < discount.valid_from:
        raise InvalidStateError("Discount code is not yet valid")
    if now > discount.valid_to:
        raise InvalidStateError("Discount code is expired")


def check_usage(discount: DiscountCode) -> None:
    if discount.max_uses is not None and discount.current_uses >= discount.max_uses:
        raise InvalidStateError("Discount code usage limit reached")


def check_buyer(discount: DiscountCode, buyer_cpf: str | None) -> None:
    if not discount.has_cpf_range:
        return
    if not buyer_cpf:
        raise InvalidStateError("Buyer required for this discount code")
    # CPFs are fixed-width digit strings, so string order is numeric order
    if not (discount.cpf_range_start <= buyer_cpf <= discount.cpf_range_end):
        raise InvalidStateError("Discount code not eligible for this buyer")


class DiscountEvaluator:
    def __init__(self, session, company_id: int, *, usage_counted_at: str = USAGE_AT_FINALIZE, audit=None):
        self.session = session
        self.company_id = company_id
        self.usage_counted_at = usage_mode(usage_counted_at)
        self.audit = audit
        self.sales = SaleAggregate(session, company_id)

    def _get(self, code: str, *, lock: bool = False) -> DiscountCode:
        query = self.session.query(DiscountCode).filter_by(company_id=self.company_id, code=code.upper())
        if lock:
            query = lock_for_update(query)
        discount = query.first()
        if not discount:
            raise NotFoundError("Discount code not found")
        return discount

    def _find(self, code: str, *, lock: bool = False) -> DiscountCode:
        discount = self._get(code, lock=lock)
        if not discount.is_active:
            raise InvalidStateError("Discount code is inactive")
        return discount

    def _applied(self, sale_id: int, discount_id: int) -> SaleDiscount | None:
        return (
            self.session.query(SaleDiscount)
            .filter_by(sale_id=sale_id, discount_code_id=discount_id)
            .first()
        )

    def _validate(self, discount: DiscountCode, buyer_cpf: str | None, now: datetime) -> None:
        check_window(discount, now)
        check_usage(discount)
        check_buyer(discount, buyer_cpf)

    def create_code(self, data: DiscountCodeInput) -> DiscountCode:
        def _op():
            existing = self.session.query(DiscountCode).filter_by(company_id=self.company_id, code=data.code).first()
            if existing:
                raise ConflictError("Discount code already exists")

            discount = DiscountCode(
                company_id=self.company_id,
                code=data.code,
                description=data.description,
                discount_type=data.discount_type,
                discount_value=data.discount_value,
                valid_from=data.valid_from,
                valid_to=data.valid_to,
                cpf_range_start=data.cpf_range_start,
                cpf_range_end=data.cpf_range_end,
                max_uses=data.max_uses,
                current_uses=0,
                is_active=True,
            )
            self.session.add(discount)
            try:
                self.session.flush()
            except IntegrityError as exc:
                raise ConflictError("Discount code already exists") from exc
            self.session.commit()
            return discount

        discount = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("CREATE_DISCOUNT_CODE", "DISCOUNT_CODE", discount.code, {
                "discount_type": discount.discount_type,
                "discount_value": discount.discount_value,
            })
        return discount

    def update_code(self, code: str, data: DiscountCodeUpdate) -> DiscountCode:
        """Edit description, validity window, usage cap or active flag. Type and value are fixed."""
        def _op():
            discount = self._get(code, lock=True)

            valid_from = data.valid_from or discount.valid_from
            valid_to = data.valid_to or discount.valid_to
            if valid_to <= valid_from:
                raise ValidationError("valid_to must be after valid_from")

            if data.max_uses is not None and data.max_uses < discount.current_uses:
                raise InvalidStateError(
                    "max_uses cannot be lower than the uses already counted",
                    details={"current_uses": discount.current_uses},
                )

            changes = {}
            if data.description is not None:
                discount.description = changes["description"] = data.description
            if data.valid_from is not None or data.valid_to is not None:
                discount.valid_from = valid_from
                discount.valid_to = valid_to
                changes["valid_from"] = to_utc_z(valid_from)
                changes["valid_to"] = to_utc_z(valid_to)
            if data.clear_max_uses:
                discount.max_uses = changes["max_uses"] = None
            elif data.max_uses is not None:
                discount.max_uses = changes["max_uses"] = data.max_uses
            if data.is_active is not None:
                discount.is_active = changes["is_active"] = data.is_active

            self.session.commit()
            return discount, changes

        discount, changes = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("UPDATE_DISCOUNT_CODE", "DISCOUNT_CODE", discount.code, changes)
        return discount

    def deactivate_code(self, code: str) -> DiscountCode:
        """Stop a code from being applied or previewed. Deactivating twice is a no-op."""
        def _op():
            discount = self._get(code, lock=True)
            was_active = discount.is_active
            discount.is_active = False
            self.session.commit()
            return discount, was_active

        discount, was_active = run_with_retry(self.session, _op)
        if self.audit and was_active:
            self.audit.record("DEACTIVATE_DISCOUNT_CODE", "DISCOUNT_CODE", discount.code)
        return discount

    def preview(self, code: str, sub_total_cents: int, buyer_cpf: str | None = None) -> dict:
        """Run the code checks against a hypothetical sub-total. No side effects."""
        discount = self._find(code)
        self._validate(discount, buyer_cpf, utcnow())
        amount = discount.amount_for(sub_total_cents)
        return {
            "code": discount.code,
            "discount_type": discount.discount_type,
            "discount_value": discount.discount_value,
            "discount_amount_cents": amount,
            "new_total_cents": max(0, sub_total_cents - amount),
        }

    def apply(self, sale_id: int, code: str) -> DiscountApplication:
        def _op():
            sale = self.sales.load_locked(sale_id)
            require_open(sale)

            discount = self._find(code, lock=True)
            self._validate(discount, sale.buyer_cpf, utcnow())

            if self._applied(sale.id, discount.id):
                raise ConflictError("Discount code already applied to this sale")

            sale_discount = SaleDiscount(
                sale_id=sale.id,
                company_id=self.company_id,
                discount_code_id=discount.id,
                code=discount.code,
                discount_amount_cents=0,
            )
            self.session.add(sale_discount)
            try:
                self.session.flush()
            except IntegrityError as exc:
                raise ConflictError("Discount code already applied to this sale") from exc

            totals = self.sales.apply_totals(sale)

            if self.usage_counted_at == USAGE_AT_APPLY:
                discount.current_uses += 1

            self.session.commit()
            return DiscountApplication(discount.code, sale_discount.discount_amount_cents, totals)

        application = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("APPLY_DISCOUNT", "SALE", sale_id, application.to_dict())
        return application

    def remove(self, sale_id: int, code: str) -> SaleTotals:
        """
        Take an applied code off an OPEN sale and refresh its totals.

        Works for codes deactivated or used up since they were applied.
        When uses are counted at apply time the use is given back.
        """
        def _op():
            sale = self.sales.load_locked(sale_id)
            require_open(sale)

            sale_discount = (
                self.session.query(SaleDiscount)
                .filter_by(sale_id=sale.id, code=code.upper())
                .first()
            )
            if not sale_discount:
                raise NotFoundError("Discount code is not applied to this sale")

            if self.usage_counted_at == USAGE_AT_APPLY:
                discount = lock_for_update(
                    self.session.query(DiscountCode).filter_by(id=sale_discount.discount_code_id)
                ).first()
                if discount and discount.current_uses > 0:
                    discount.current_uses -= 1

            self.session.delete(sale_discount)
            self.session.flush()
            totals = self.sales.apply_totals(sale)
            self.session.commit()
            return totals

        totals = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("REMOVE_DISCOUNT", "SALE", sale_id, {"code": code.upper(), **totals.to_dict()})
        return totals
