from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


EMPLOYEE_ROLES = ("CASHIER", "MANAGER", "ADMIN")


class Employee(db.Model):
    """
    Staff member of a company. The CPF is the business key used on sales
    (cashier_cpf) and in the audit log (actor_cpf).
    """
    __tablename__ = "employees"
    __table_args__ = (
        db.UniqueConstraint("company_id", "cpf", name="uq_employees_company_cpf"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    cpf = db.Column(db.String(11), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="CASHIER")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    company = db.relationship("Company", backref=db.backref("employees", lazy=True))

    def __repr__(self) -> str:
        return f"<Employee id={self.id} cpf={self.cpf} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "cpf": self.cpf,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SessionToken(db.Model):
    """
    API token issued to an employee.

    Only the SHA-256 hash of the token is stored. The company is captured
    at issue time and is the tenant context for every request made with it.
    """
    __tablename__ = "session_tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    is_revoked = db.Column(db.Boolean, nullable=False, default=False)

    employee = db.relationship("Employee", backref=db.backref("tokens", lazy=True))
