"""Single authoritative store per entity.

Every screen reads and writes through one :class:`RecordStore` bound to a
model, so there is exactly one place that mutates a given record type.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, TypeVar

from stockdesk.extensions import db

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class RecordNotFound(LookupError):
    """Raised when an id does not resolve to a stored record."""

    def __init__(self, label: str, record_id):
        super().__init__(f"{label} {record_id} not found.")
        self.label = label
        self.record_id = record_id


class RecordStore(Generic[ModelT]):
    def __init__(self, model, *, label: str | None = None, order_by=None):
        self.model = model
        self.label = label or model.__name__
        self._order_by = order_by

    def query(self):
        query = self.model.query
        order_by = self._order_by if self._order_by is not None else self.model.id
        return query.order_by(order_by)

    def all(self) -> list[ModelT]:
        return self.query().all()

    def count(self) -> int:
        return self.model.query.count()

    def find(self, record_id) -> ModelT | None:
        try:
            record_id = int(record_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(self.model, record_id)

    def get(self, record_id) -> ModelT:
        record = self.find(record_id)
        if record is None:
            raise RecordNotFound(self.label, record_id)
        return record

    def add(self, record: ModelT, *, commit: bool = True) -> ModelT:
        db.session.add(record)
        if commit:
            db.session.commit()
            logger.info("Created %s %s", self.label, record.id)
        return record

    def update(self, record_id, patch: Mapping[str, Any], *, commit: bool = True) -> ModelT:
        """Apply ``patch`` to the record; unknown attributes are rejected."""

        record = self.get(record_id)
        for field, value in patch.items():
            if not hasattr(self.model, field):
                raise AttributeError(f"{self.label} has no field {field!r}.")
            setattr(record, field, value)
        if commit:
            db.session.commit()
            logger.info("Updated %s %s (%s)", self.label, record.id, ", ".join(sorted(patch)))
        return record

    def delete(self, record_id, *, commit: bool = True) -> None:
        record = self.get(record_id)
        db.session.delete(record)
        if commit:
            db.session.commit()
            logger.info("Deleted %s %s", self.label, record_id)
