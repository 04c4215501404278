"""
Audit trail writer.

record() runs after the business transaction has committed. A failure to
persist the audit row is logged and swallowed: the operation it describes
has already happened and must not be reported as failed.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..models import AuditLog
from ..time_utils import utcnow


logger = logging.getLogger(__name__)


class AuditLogger:
    def __init__(
        self,
        session,
        company_id: int,
        *,
        actor_cpf: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ):
        self.session = session
        self.company_id = company_id
        self.actor_cpf = actor_cpf
        self.ip_address = ip_address
        self.user_agent = user_agent

    def record(self, action: str, target_type: str, target_id: Any = None, metadata: dict | None = None) -> AuditLog | None:
        entry = AuditLog(
            company_id=self.company_id,
            actor_cpf=self.actor_cpf,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            metadata_json=metadata,
            ip_address=self.ip_address,
            user_agent=(self.user_agent or "")[:500] or None,
            occurred_at=utcnow(),
        )
        try:
            self.session.add(entry)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to write audit entry %s for %s %s", action, target_type, target_id)
            return None
        return entry
