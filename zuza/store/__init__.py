from zuza.store.errors import InvalidKey, NotFound, StoreError, StoreIOError
from zuza.store.filestore import FileStore
from zuza.store.partitions import all_objects, is_visible, owned_by

__all__ = [
    "FileStore",
    "InvalidKey",
    "NotFound",
    "StoreError",
    "StoreIOError",
    "all_objects",
    "is_visible",
    "owned_by",
]
