"""Shared helpers for services and blueprints.

get_or_raise:    primary-key lookup raising NotFoundError
commit_session:  commit with rollback + logging on failure
filter_value:    "all" / empty query values mean "no filter"
utcnow:          timezone-aware now, single source for server stamps
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from faculty_reporting.core.exceptions import NotFoundError
from faculty_reporting.models import db

logger = logging.getLogger(__name__)

ALL = "all"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_key(pk):
    if isinstance(pk, bool):
        return None
    if isinstance(pk, int):
        return pk
    if isinstance(pk, str) and pk.strip().isascii() and pk.strip().isdigit():
        return int(pk.strip())
    return None


def get_or_raise(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError.

    Only ints (not bools) and digit-only strings are keys; anything else
    (floats, booleans, "1.5") counts as missing.
    """
    label = label or model.__name__
    key = _as_key(pk)
    if key is None:
        raise NotFoundError(label, pk)
    obj = db.session.get(model, key)
    if obj is None:
        raise NotFoundError(label, pk)
    return obj


def filter_value(value):
    """Normalise a filter parameter: None for missing, blank or ``all``."""
    if value is None:
        return None
    value = str(value).strip()
    if not value or value.lower() == ALL:
        return None
    return value


def commit_session():
    """Commit the current session; roll back and re-raise on failure.

    IntegrityError is logged at warning level (duplicate / constraint);
    everything else is logged with traceback.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Database error on commit")
        raise
