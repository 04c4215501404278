from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


TICKET_STATUSES = ("ISSUED", "USED", "REFUNDED")


class Ticket(db.Model):
    """
    Permanent record of a sold seat for a session.

    A seat can carry at most one non-refunded ticket per session. The
    partial unique index makes a concurrent double sale fail at flush time
    instead of relying on a read-then-write check.
    """
    __tablename__ = "tickets"
    __table_args__ = (
        db.Index(
            "uq_tickets_session_seat_live",
            "session_id",
            "seat_id",
            unique=True,
            sqlite_where=db.text("status != 'REFUNDED'"),
            postgresql_where=db.text("status != 'REFUNDED'"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("sessions.id"), nullable=False, index=True)
    seat_map_id = db.Column(db.Integer, db.ForeignKey("seat_maps.id"), nullable=False)
    seat_id = db.Column(db.Integer, db.ForeignKey("seats.id"), nullable=False)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    price_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="ISSUED", index=True)
    qr_code = db.Column(db.String(100), nullable=False, unique=True)

    issued_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    refund_reason = db.Column(db.String(500), nullable=True)

    seat = db.relationship("Seat")
    session = db.relationship("MovieSession", backref=db.backref("tickets", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "session_id": self.session_id,
            "seat_map_id": self.seat_map_id,
            "seat_id": self.seat_id,
            "seat_code": self.seat.code if self.seat else None,
            "sale_id": self.sale_id,
            "price_cents": self.price_cents,
            "status": self.status,
            "qr_code": self.qr_code,
            "issued_at": to_utc_z(self.issued_at),
            "used_at": to_utc_z(self.used_at) if self.used_at else None,
            "refunded_at": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "refund_reason": self.refund_reason,
        }


class SeatReservation(db.Model):
    """
    Short-lived hold on a seat during checkout.

    One row per (session, seat): an expired row is taken over in place by
    the next holder, so the unique constraint also serializes concurrent
    holds on the same seat. The reservation token is client-generated and
    shared by every seat in the same checkout.
    """
    __tablename__ = "seat_reservations"
    __table_args__ = (
        db.UniqueConstraint("session_id", "seat_id", name="uq_seat_reservations_session_seat"),
        db.Index("ix_seat_reservations_company_token", "company_id", "reservation_token"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    session_id = db.Column(db.Integer, db.ForeignKey("sessions.id"), nullable=False, index=True)
    seat_map_id = db.Column(db.Integer, db.ForeignKey("seat_maps.id"), nullable=False)
    seat_id = db.Column(db.Integer, db.ForeignKey("seats.id"), nullable=False)
    reservation_token = db.Column(db.String(100), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    seat = db.relationship("Seat")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "seat_map_id": self.seat_map_id,
            "seat_id": self.seat_id,
            "seat_code": self.seat.code if self.seat else None,
            "reservation_token": self.reservation_token,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
        }
