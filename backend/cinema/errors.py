"""
Error taxonomy shared by services and routes.

Services raise only CinemaError subclasses. Routes turn them into the
JSON failure envelope: {"success": false, "message": ..., **details}.
"""

from __future__ import annotations

from flask import jsonify


class CinemaError(Exception):
    """Base for every business-level failure."""
    http_status = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CinemaError):
    """400-level input problem, raised at the request boundary."""
    http_status = 400


class NotFoundError(CinemaError):
    """Referenced entity does not exist in the caller's tenant."""
    http_status = 404


class ConflictError(CinemaError):
    """409-level state collision (seat taken, code already applied, ...)."""
    http_status = 409


class InvalidStateError(CinemaError):
    """Well-formed request that breaks a business rule."""
    http_status = 400


class StorageError(CinemaError):
    """Unexpected persistence failure. Never carries driver details."""
    http_status = 500


def error_response(exc: CinemaError):
    body = {"success": False, "message": exc.message}
    body.update(exc.details)
    return jsonify(body), exc.http_status
