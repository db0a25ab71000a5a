"""Translation of driver failures into store errors."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.exceptions import ConstraintViolationError, StoreUnavailableError


@contextmanager
def translate_store_errors() -> Iterator[None]:
    """Re-raise SQLAlchemy and socket errors as StoreError subclasses."""
    try:
        yield
    except IntegrityError as exc:
        raise ConstraintViolationError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        raise StoreUnavailableError(f"{type(exc).__name__}: {exc}") from exc
    except OSError as exc:
        raise StoreUnavailableError(f"{type(exc).__name__}: {exc}") from exc
