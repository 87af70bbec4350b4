"""Exceptions raised by the services and translated by the errors blueprint."""

from __future__ import annotations

from typing import Iterable

from stockdesk.store import RecordNotFound

__all__ = [
    "ConfirmationRequired",
    "ConflictError",
    "InsufficientStock",
    "RecordNotFound",
    "TransferClosed",
    "TransitionRefused",
    "ValidationError",
]


class ValidationError(ValueError):
    """A submission was missing required fields or carried unparseable values."""

    def __init__(self, errors: Iterable[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class ConfirmationRequired(ValueError):
    def __init__(self, label: str):
        super().__init__(f"Deleting this {label} requires confirmation.")


class ConflictError(ValueError):
    """The request is well formed but the current state refuses it."""


class TransitionRefused(ConflictError):
    def __init__(self, label: str, current: str, target: str):
        super().__init__(f"{label} cannot move from {current} to {target}.")
        self.current = current
        self.target = target


class InsufficientStock(ConflictError):
    def __init__(self, product_name: str, available: int, requested: int):
        super().__init__(
            f"Not enough stock for {product_name}. Available {available}, requested {requested}."
        )
        self.available = available
        self.requested = requested


class TransferClosed(ConflictError):
    def __init__(self, status: str):
        super().__init__(f"Transfer is {status} and can no longer change.")
        self.status = status
