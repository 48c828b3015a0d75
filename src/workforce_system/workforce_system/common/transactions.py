from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol


class TransactionManager(Protocol):
    """Opens a unit of work; repository calls made inside share it.

    The outermost block commits on success and rolls back on any exception.
    """

    def transaction(self) -> AbstractContextManager[None]:
        raise NotImplementedError
