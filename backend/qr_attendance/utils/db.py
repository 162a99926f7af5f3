"""Transaction scoping for service operations."""
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from qr_attendance import db
from qr_attendance.utils.errors import ConflictError, InfrastructureError


@contextmanager
def transaction():
    """Run a unit of work in one database transaction.

    Commits when the block finishes and rolls back on any exception,
    including cancellation, so an abandoned call leaves no partial state.
    Unique constraint violations surface as ConflictError and every other
    storage failure as InfrastructureError.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError('Record already exists', detail=str(e.orig)) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise InfrastructureError(detail=str(e)) from e
    except BaseException:
        db.session.rollback()
        raise
