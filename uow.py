"""
Unit of Work

Groups several document writes so that they either all stand or are all
undone. MongoDB only offers multi-document transactions on replica sets, so
each applied step registers a compensating action instead; if the block
raises, the compensations run newest first and the error propagates.

Usage:
    with UnitOfWork("checkout") as uow:
        catalog.mark_sold(db, pid, buyer, now)
        uow.on_rollback(catalog.release, db, pid, buyer)
        ...
"""

import logging
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, name: str = "unit of work"):
        self.name = name
        self._undo: List[Tuple[Callable[..., Any], tuple, dict]] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            logger.warning("Rolling back %s after %s: %s", self.name, exc_type.__name__, exc_val)
            self.rollback()
        return False

    def on_rollback(self, fn: Callable[..., Any], *args, **kwargs) -> None:
        self._undo.append((fn, args, kwargs))

    def commit(self) -> None:
        self._undo.clear()

    def rollback(self) -> None:
        while self._undo:
            fn, args, kwargs = self._undo.pop()
            try:
                fn(*args, **kwargs)
            except Exception:
                # keep undoing the rest; the original error is what the caller sees
                logger.exception("Rollback step %s failed in %s", getattr(fn, "__name__", fn), self.name)
