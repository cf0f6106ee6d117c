"""
Generic CRUD helpers shared by the persistence services.

Every helper takes an optional ``owner_id``; when the model has an
``owner_id`` column the query is restricted to it, so callers cannot
reach another extension instance's rows by id.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from ..exceptions import PersistenceError, not_found
from ..utils.logger import get_logger

T = TypeVar("T")


def _scoped_query(session: Session, model_class: Type[T], owner_id: Optional[str]):
    query = session.query(model_class)
    if owner_id and hasattr(model_class, "owner_id"):
        query = query.filter(model_class.owner_id == owner_id)  # type: ignore[attr-defined]
    return query


def _apply_filters(query, model_class, filters: Optional[Dict[str, Any]]):
    for key, value in (filters or {}).items():
        if not hasattr(model_class, key) or value is None:
            continue
        column = getattr(model_class, key)
        if isinstance(value, (list, tuple, set, frozenset)):
            query = query.filter(column.in_(list(value)))
        else:
            query = query.filter(column == value)
    return query


def create_record(
    session: Session, model_class: Type[T], data: Dict[str, Any], owner_id: Optional[str] = None
) -> T:
    """
    Generic create operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        data: Data dictionary
        owner_id: Optional owner ID to add

    Returns:
        Created record instance

    Raises:
        PersistenceError: If creation fails
    """
    logger = get_logger()

    try:
        if owner_id and hasattr(model_class, "owner_id") and "owner_id" not in data:
            data["owner_id"] = owner_id

        if hasattr(model_class, "created_at"):
            data["created_at"] = datetime.now(timezone.utc)
        if hasattr(model_class, "updated_at"):
            data["updated_at"] = datetime.now(timezone.utc)

        record = model_class(**data)
        session.add(record)
        session.commit()

        logger.info(
            f"Created {model_class.__name__}",
            extra={
                "model": model_class.__name__,
                "record_id": getattr(record, "id", None),
                "owner_id": owner_id,
            },
        )

        return record

    except Exception as e:
        session.rollback()
        raise PersistenceError(
            f"Failed to create {model_class.__name__}: {str(e)}",
            cause=e,
            model=model_class.__name__,
            owner_id=owner_id,
        )


def get_record(
    session: Session, model_class: Type[T], filters: Dict[str, Any], owner_id: Optional[str] = None
) -> Optional[T]:
    """
    Generic get operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        filters: Filter conditions
        owner_id: Optional owner ID filter

    Returns:
        Record instance or None
    """
    query = _scoped_query(session, model_class, owner_id)
    return _apply_filters(query, model_class, filters).first()


def get_record_by_id(
    session: Session, model_class: Type[T], record_id: str, owner_id: Optional[str] = None
) -> Optional[T]:
    """Generic get by ID operation."""
    return get_record(session, model_class, {"id": record_id}, owner_id)


def update_record(
    session: Session,
    model_class: Type[T],
    record_id: str,
    data: Dict[str, Any],
    owner_id: Optional[str] = None,
) -> T:
    """
    Generic update operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        record_id: Record ID to update
        data: Update data dictionary
        owner_id: Optional owner ID filter

    Returns:
        Updated record instance

    Raises:
        NotFoundError: If the record does not exist for this owner
        PersistenceError: If update fails
    """
    logger = get_logger()

    record = get_record_by_id(session, model_class, record_id, owner_id)
    if not record:
        raise not_found(model_class.__name__, record_id=record_id, owner_id=owner_id)

    try:
        for key, value in data.items():
            if hasattr(record, key):
                setattr(record, key, value)

        if hasattr(record, "updated_at"):
            record.updated_at = datetime.now(timezone.utc)

        session.commit()

        logger.info(
            f"Updated {model_class.__name__}",
            extra={"model": model_class.__name__, "record_id": record_id, "owner_id": owner_id},
        )

        return record

    except Exception as e:
        session.rollback()
        raise PersistenceError(
            f"Failed to update {model_class.__name__}: {str(e)}",
            cause=e,
            model=model_class.__name__,
            record_id=record_id,
            owner_id=owner_id,
        )


def upsert_record(
    session: Session,
    model_class: Type[T],
    key_filters: Dict[str, Any],
    data: Dict[str, Any],
    owner_id: Optional[str] = None,
) -> T:
    """
    Update the record matching ``key_filters`` or create it.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        key_filters: Natural key of the record (owner_id is added automatically)
        data: Values to write
        owner_id: Optional owner ID filter

    Returns:
        The created or updated record
    """
    existing = get_record(session, model_class, key_filters, owner_id)
    if existing is not None:
        return update_record(session, model_class, existing.id, data, owner_id)  # type: ignore[attr-defined]
    return create_record(session, model_class, {**key_filters, **data}, owner_id)


def delete_record(
    session: Session, model_class: Type[T], record_id: str, owner_id: Optional[str] = None
) -> bool:
    """
    Generic delete operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        record_id: Record ID to delete
        owner_id: Optional owner ID filter

    Returns:
        True if deleted, False if not found

    Raises:
        PersistenceError: If delete fails
    """
    logger = get_logger()

    try:
        record = get_record_by_id(session, model_class, record_id, owner_id)
        if not record:
            return False

        session.delete(record)
        session.commit()

        logger.info(
            f"Deleted {model_class.__name__}",
            extra={"model": model_class.__name__, "record_id": record_id, "owner_id": owner_id},
        )

        return True

    except Exception as e:
        session.rollback()
        raise PersistenceError(
            f"Failed to delete {model_class.__name__}: {str(e)}",
            cause=e,
            model=model_class.__name__,
            record_id=record_id,
            owner_id=owner_id,
        )


def delete_records(
    session: Session,
    model_class: Type[T],
    filters: Dict[str, Any],
    owner_id: Optional[str] = None,
) -> int:
    """
    Delete every record matching the filters.

    Returns:
        Number of deleted records

    Raises:
        PersistenceError: If delete fails
    """
    logger = get_logger()

    try:
        query = _apply_filters(_scoped_query(session, model_class, owner_id), model_class, filters)
        deleted = query.delete(synchronize_session=False)
        session.commit()

        logger.info(
            f"Deleted {deleted} {model_class.__name__} records",
            extra={"model": model_class.__name__, "deleted": deleted, "owner_id": owner_id},
        )

        return deleted

    except Exception as e:
        session.rollback()
        raise PersistenceError(
            f"Failed to delete {model_class.__name__} records: {str(e)}",
            cause=e,
            model=model_class.__name__,
            owner_id=owner_id,
        )


def list_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    owner_id: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
) -> List[T]:
    """
    Generic list operation for any model.

    Filter values that are lists become IN clauses. Without ``order_by``,
    models with ``created_at`` are returned newest first.
    """
    query = _apply_filters(_scoped_query(session, model_class, owner_id), model_class, filters)

    if order_by and hasattr(model_class, order_by):
        query = query.order_by(getattr(model_class, order_by))
    elif hasattr(model_class, "created_at"):
        query = query.order_by(model_class.created_at.desc())  # type: ignore[attr-defined]

    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)

    return query.all()


def count_records(
    session: Session,
    model_class: Type[T],
    filters: Optional[Dict[str, Any]] = None,
    owner_id: Optional[str] = None,
) -> int:
    """Generic count operation for any model."""
    query = _scoped_query(session, model_class, owner_id)
    return _apply_filters(query, model_class, filters).count()


def record_exists(
    session: Session, model_class: Type[T], filters: Dict[str, Any], owner_id: Optional[str] = None
) -> bool:
    """Check if a record exists with the given filters."""
    return get_record(session, model_class, filters, owner_id) is not None

