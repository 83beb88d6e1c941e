"""
Errors raised by the content store.

Callers only ever see these three kinds, so an API layer can map them onto
its own responses (400, 404 and 500 respectively).
"""


class StoreError(Exception):
    pass


class InvalidKey(StoreError, ValueError):
    """Malformed or unsafe object identifier, name or date."""


class NotFound(StoreError):
    """The object (or directory) addressed does not exist."""


class StoreIOError(StoreError):
    """Any other filesystem failure."""


def translate_oserror(e: OSError, what: str) -> StoreError:
    if isinstance(e, (FileNotFoundError, NotADirectoryError)):
        return NotFound(f"{what} does not exist")
    return StoreIOError(f"I/O error on {what}: {e.strerror or e}")
