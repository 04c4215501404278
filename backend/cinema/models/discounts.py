from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


DISCOUNT_TYPES = ("PERCENT", "AMOUNT")

# 100% expressed in basis points
MAX_PERCENT_BPS = 10_000


class DiscountCode(db.Model):
    """
    Promotional code, unique per company.

    discount_value is basis points for PERCENT (1000 = 10%) and cents for
    AMOUNT. When both cpf_range bounds are set the code only applies to
    sales whose buyer CPF falls inside the inclusive range.
    """
    __tablename__ = "discount_codes"
    __table_args__ = (
        db.UniqueConstraint("company_id", "code", name="uq_discount_codes_company_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    code = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(200), nullable=True)

    discount_type = db.Column(db.String(16), nullable=False)  # PERCENT, AMOUNT
    discount_value = db.Column(db.Integer, nullable=False)

    valid_from = db.Column(db.DateTime(timezone=True), nullable=False)
    valid_to = db.Column(db.DateTime(timezone=True), nullable=False)

    cpf_range_start = db.Column(db.String(11), nullable=True)
    cpf_range_end = db.Column(db.String(11), nullable=True)

    max_uses = db.Column(db.Integer, nullable=True)
    current_uses = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def has_cpf_range(self) -> bool:
        return bool(self.cpf_range_start and self.cpf_range_end)

    def amount_for(self, sub_total_cents: int) -> int:
        """Discount in cents against a sub-total; never more than the sub-total."""
        if sub_total_cents <= 0:
            return 0
        if self.discount_type == "PERCENT":
            amount = (sub_total_cents * self.discount_value + 5_000) // MAX_PERCENT_BPS
        else:
            amount = self.discount_value
        return min(amount, sub_total_cents)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "valid_from": to_utc_z(self.valid_from),
            "valid_to": to_utc_z(self.valid_to),
            "cpf_range_start": self.cpf_range_start,
            "cpf_range_end": self.cpf_range_end,
            "max_uses": self.max_uses,
            "current_uses": self.current_uses,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
