from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import ConflictError
from extensions import db

def _is_unique_violation(ex: IntegrityError) -> bool:
    msg = (str(ex.orig) if getattr(ex, "orig", None) else str(ex)).lower()
    return "unique" in msg or "duplicate" in msg

@contextmanager
def unit_of_work(conflict_message: str, *, unique_message: str | None = None,
                 conflict_on_storage_error: bool = False) -> Iterator[Session]:
    """Everything inside commits once or not at all.

    IntegrityError → ConflictError (``unique_message`` for uniqueness violations).
    With ``conflict_on_storage_error`` any other storage failure is reported as a
    conflict as well; deletes use it so a failed cascade step surfaces as 409.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as ex:
        db.session.rollback()
        if unique_message and _is_unique_violation(ex):
            raise ConflictError(unique_message) from ex
        raise ConflictError(conflict_message) from ex
    except SQLAlchemyError as ex:
        db.session.rollback()
        if conflict_on_storage_error:
            raise ConflictError(conflict_message) from ex
        raise
    except Exception:
        db.session.rollback()
        raise
