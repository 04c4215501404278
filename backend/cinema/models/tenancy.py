from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


class Company(db.Model):
    """
    Multi-tenant root: every cinema company is a tenant.

    All rooms, sessions, sales, employees and discount codes belong to
    exactly one company. No data may cross company boundaries; every
    service query filters by company_id.
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    cnpj = db.Column(db.String(14), nullable=True, unique=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Company id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "cnpj": self.cnpj,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
