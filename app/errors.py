"""Domain errors and their HTTP mapping.

ReplicationError never leaves the replication sink; the others abort the
request and are rendered as ``{message, error}`` JSON bodies.
"""
from typing import Optional


class OrderServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_body(self) -> dict:
        body = {"message": self.message}
        if self.detail is not None:
            body["error"] = self.detail
        return body


class ValidationError(OrderServiceError):
    status_code = 400


class NotFoundError(OrderServiceError):
    status_code = 404


class PersistenceError(OrderServiceError):
    status_code = 500


class ReplicationError(OrderServiceError):
    """Webhook delivery failed. Logged only."""
