# Overview: Service-layer operations for employee API tokens.

"""
Employee API Token Management

Tokens are opaque bearer strings minted from the CLI. Only the SHA-256
hash is stored; the plaintext is shown once at issue time.

- Cryptographically secure random tokens (32 bytes)
- Absolute expiry (SESSION_TOKEN_HOURS)
- Revocable
- The company captured at issue time is the tenant context for every
  request made with the token
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..errors import NotFoundError, InvalidStateError
from ..models import Company, Employee, SessionToken
from ..time_utils import utcnow


DEFAULT_TOKEN_HOURS = 12


@dataclass
class AuthContext:
    """Caller identity and tenant resolved from a valid token."""
    employee: Employee
    token: SessionToken
    company_id: int


def generate_token() -> str:
    """64-character hex string; the plaintext given to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(session, company_id: int, cpf: str, *, hours: int = DEFAULT_TOKEN_HOURS) -> tuple[SessionToken, str]:
    """
    Mint a token for an active employee of an active company.

    Returns (token_record, plaintext_token).
    """
    employee = session.query(Employee).filter_by(company_id=company_id, cpf=cpf).first()
    if not employee:
        raise NotFoundError("Employee not found")
    if not employee.is_active:
        raise InvalidStateError("Employee is not active")

    company = session.query(Company).filter_by(id=company_id).first()
    if not company or not company.is_active:
        raise InvalidStateError("Company is not active")

    plaintext = generate_token()
    now = utcnow()
    record = SessionToken(
        employee_id=employee.id,
        company_id=company_id,
        token_hash=hash_token(plaintext),
        created_at=now,
        expires_at=now + timedelta(hours=hours),
        is_revoked=False,
    )
    session.add(record)
    session.commit()
    return record, plaintext


def validate_token(session, token: str) -> AuthContext | None:
    """
    Resolve a plaintext token into an AuthContext.

    Returns None if the token is unknown, expired or revoked, or if its
    employee or company has been deactivated.
    """
    record = session.query(SessionToken).filter_by(token_hash=hash_token(token), is_revoked=False).first()
    if not record:
        return None
    if record.expires_at < utcnow():
        return None

    employee = record.employee
    if not employee or not employee.is_active:
        return None

    company = session.query(Company).filter_by(id=record.company_id).first()
    if not company or not company.is_active:
        return None

    return AuthContext(employee=employee, token=record, company_id=record.company_id)


def revoke_token(session, token: str) -> bool:
    """Returns True if an active token was revoked, False if not found."""
    record = session.query(SessionToken).filter_by(token_hash=hash_token(token), is_revoked=False).first()
    if not record:
        return False
    record.is_revoked = True
    session.commit()
    return True
