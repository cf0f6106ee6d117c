"""
Base service with session handling shared by the persistence services.
"""

from typing import NoReturn, Optional

from sqlalchemy.orm import Session

from ..db.db_config import get_db_manager
from ..exceptions import BaseError, PersistenceError
from ..utils.logger import get_logger


class SessionManagedService:
    """
    Service that owns and manages its own database session.

    A session passed in (tests, or a caller coordinating several services)
    is used as-is and never closed here; otherwise one is taken from the
    global DatabaseManager.
    """

    def __init__(self, session: Optional[Session] = None):
        if session is not None:
            self.session = session
            self._owns_session = False
        else:
            self.session = get_db_manager().get_session()
            self._owns_session = True

        self.logger = get_logger()

    def _handle_service_exception(
        self, operation: str, exception: Exception, record_id: Optional[str] = None
    ) -> NoReturn:
        """
        Log and re-raise an exception as a console error.

        BaseError subclasses propagate unchanged; anything else becomes a
        PersistenceError.
        """
        if isinstance(exception, BaseError):
            raise exception

        self.logger.error(
            f"Error in {operation}: {str(exception)}",
            extra={
                "operation": operation,
                "record_id": record_id,
                "error_type": type(exception).__name__,
            },
            exc_info=True,
        )
        raise PersistenceError(
            f"Error in {operation}: {str(exception)}",
            cause=exception,
            operation=operation,
            record_id=record_id,
        )

    def commit(self):
        """Manually commit the current transaction."""
        if self._owns_session:
            self.session.commit()

    def rollback(self):
        """Manually rollback the current transaction."""
        if self._owns_session:
            self.session.rollback()

    def close(self):
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        else:
            self.commit()
        self.close()
