from __future__ import annotations

import logging

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


class StorageConflict(Exception):
    """A concurrent writer changed the row between our read and our write."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"Concurrent update conflict on {entity} #{entity_id}")
        self.entity = entity
        self.entity_id = entity_id


def commit_guarded(db: Session, model: type, entity_id: object) -> bool:
    """
    Flush and commit the unit of work under the model's version guard.

    The version check runs at flush time, so both steps sit inside the guard.

    Returns False when the row was deleted concurrently (callers answer 404);
    any other stale-data failure is escalated as StorageConflict.
    """

    try:
        db.flush()
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        if db.get(model, entity_id) is None:
            logger.info("Row vanished during commit table=%s id=%s", model.__tablename__, entity_id)
            return False
        logger.warning("Concurrent update conflict table=%s id=%s", model.__tablename__, entity_id)
        raise StorageConflict(model.__tablename__, entity_id) from exc
    return True
