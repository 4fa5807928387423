# Overview: Shared repository plumbing: page results, store error wrapping, substring filters.

"""
Common contract for the customer, product and order repositories.

Every repository is built around an injected SQLAlchemy Session; nothing in
this package reaches for the Flask app or a module-level handle, so callers
(routes, CLI, tests) decide which session and transaction a repository runs in.

ERRORS:
- ValidationError / ConflictError come from orderapp.validation
- ConcurrencyConflictError: version mismatch on an order update
- NotFoundError: a lookup that is required to succeed did not
- StoreError: anything the store itself raised (always after rollback)
"""
from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..validation import ConflictError, ValidationError, coerce_int

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(Exception):
    """Underlying store failure. The message never carries driver details."""

    def __init__(self, operation: str, entity_id=None):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(f"Store operation failed: {operation}")


class NotFoundError(LookupError):
    """Target row does not exist."""


class ConcurrencyConflictError(ConflictError):
    """Row was changed by someone else since the caller read it."""

    def __init__(self, entity_id, expected_version=None, current_version=None):
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__("This record was updated by another user. Reload and try again.")


@dataclass
class Page(Generic[T]):
    data: list[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int

    def to_dict(self) -> dict:
        return {
            "data": [item.to_dict() for item in self.data],
            "total_count": self.total_count,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


def total_pages_for(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size)


def paginate(query: Query, page, page_size) -> Page:
    """
    Run an ordered query as one page.

    offset = (page - 1) * page_size, limit = page_size. Pages past the end
    are valid and come back empty.
    """
    page = coerce_int("page", page)
    page_size = coerce_int("page_size", page_size)
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1:
        raise ValidationError("page_size must be >= 1")

    total = query.order_by(None).count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()

    return Page(
        data=rows,
        total_count=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages_for(total, page_size),
    )


def contains(column, keyword: str):
    """Literal substring match; % and _ in the keyword are not wildcards."""
    return column.contains(keyword, autoescape=True)


class BaseRepository:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _transaction(self, operation: str, entity_id=None):
        """
        Scope for one repository call.

        Any exception rolls the session back. Store exceptions are logged with
        the operation and entity id and re-raised as StoreError; everything
        else (validation, conflicts) propagates unchanged.
        """
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Store failure during %s (id=%s)", operation, entity_id)
            raise StoreError(operation, entity_id) from exc
        except Exception:
            self.session.rollback()
            raise
