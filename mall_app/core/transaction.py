import logging
from typing import Any, Awaitable, Callable

from sqlalchemy.exc import IntegrityError

from .errors import LifecycleConflict

logger = logging.getLogger(__name__)


async def atomic(db, handler: Callable[[], Awaitable[Any]]) -> Any:
    """Run ``handler`` as one unit of work on ``db``.

    The handler commits once at its end; anything raised before that rolls
    the whole unit back so no write is ever partially applied.
    """
    try:
        return await handler()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Write rejected by a data constraint: {e.orig!r}")
        raise LifecycleConflict(
            "The change conflicts with existing records and was not applied"
        ) from e
    except BaseException:
        await db.rollback()
        raise
