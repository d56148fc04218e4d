"""
Owner of the active address book. Loads the association list from the
JSON config file and guards replacement of a read-only book.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from core.config import settings
from core.errors import ConfigShapeError, ReadonlyViolation
from core.models import AddressBook
from core.normalizer import normalize

log = logging.getLogger(__name__)


def read_associations(path: Path, strict: bool = False) -> Any:
    """Return the raw 'associations' object from path, or {} when unusable."""
    if not path.exists() and not strict:
        log.warning("association list %s not found, nothing will be overridden", path)
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        if strict:
            raise
        log.warning("failed to load association list from %s", path)
        return {}
    if not isinstance(data, dict):
        if strict:
            raise ConfigShapeError(str(path), data)
        log.warning("association list %s is not a JSON object", path)
        return {}
    return data.get("associations", {})


class BookState:
    def __init__(
        self,
        book: Optional[AddressBook] = None,
        path: Optional[str] = None,
        readonly: Optional[bool] = None,
        strict: Optional[bool] = None,
    ):
        self.readonly = settings.readonly if readonly is None else readonly
        self.strict = settings.strict_config if strict is None else strict
        self._lock = threading.Lock()
        self._book = book if book is not None else self.load(path)

    @property
    def book(self) -> AddressBook:
        return self._book

    def load(self, path: Optional[str] = None) -> AddressBook:
        path_ = Path(path or settings.associations_file)
        raw = read_associations(path_, strict=self.strict)
        book = normalize(raw, strict=self.strict)
        log.info("loaded %d associations from %s", len(book), path_)
        return book

    def replace(self, book: AddressBook, on_swap: Optional[Callable[[AddressBook], None]] = None) -> None:
        """Swap the book; on_swap runs under the same lock so dependents switch with it."""
        if self.readonly:
            log.warning("List was marked as readonly")
            raise ReadonlyViolation("address book is read-only; rebuild the override instead")
        with self._lock:
            self._book = book
            if on_swap is not None:
                on_swap(book)
