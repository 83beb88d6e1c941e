"""
Object identifiers

Every stored object is addressed as ``date/owner/name``, which maps one to one
onto ``<root>/<date>/<owner>/<name>`` on disk. All identifiers, names and dates
coming from outside must go through this module before they are used to build
a path.
"""

import re
from datetime import UTC, datetime

from zuza.models import ObjectKey
from zuza.store.errors import InvalidKey

DATE_PATTERN = re.compile(r"^\d{8}$")
SEPARATOR = "/"


def validate_date(date: str) -> str:
    if not isinstance(date, str) or not DATE_PATTERN.match(date):
        raise InvalidKey(f"Invalid date {date!r}, expected YYYYMMDD")
    return date


def is_date(name: str) -> bool:
    return bool(DATE_PATTERN.match(name))


def _validate_segment(kind: str, value: str) -> str:
    if not value:
        raise InvalidKey(f"Empty {kind} segment")
    if ".." in value:
        raise InvalidKey(f"Invalid {kind} {value!r}: parent directory reference")
    if SEPARATOR in value or "\\" in value or "\0" in value:
        raise InvalidKey(f"Invalid {kind} {value!r}: contains a separator")
    if value == ".":
        raise InvalidKey(f"Invalid {kind} {value!r}")
    return value


def parse_file_id(file_id: str) -> ObjectKey:
    if not isinstance(file_id, str):
        raise InvalidKey(f"Invalid file id {file_id!r}")
    if ".." in file_id:
        raise InvalidKey(f"Invalid file id {file_id!r}: parent directory reference")
    parts = file_id.split(SEPARATOR)
    if len(parts) != 3:
        raise InvalidKey(f"Invalid file id {file_id!r}: expected date/owner/name")
    date, owner, name = parts
    validate_date(date)
    _validate_segment("owner", owner)
    _validate_segment("name", name)
    return ObjectKey(date=date, owner=owner, name=name)


def format_file_id(date: str, owner: str, name: str) -> str:
    validate_date(date)
    _validate_segment("owner", owner)
    _validate_segment("name", name)
    return SEPARATOR.join([date, owner, name])


def sanitize_name(raw: str) -> str:
    """
    Turn a client-supplied file name into a safe object name.

    Directory components (either separator) are dropped and any ``..`` is removed.
    Raises InvalidKey if nothing usable is left.
    """
    name = re.split(r"[\\/]", raw or "")[-1]
    name = name.replace("..", "").replace("\0", "").strip()
    if not name or name == ".":
        raise InvalidKey(f"Invalid file name {raw!r}")
    return name


def date_key(moment: datetime | None = None) -> str:
    """The YYYYMMDD partition name for the given moment (default: now), in UTC"""
    if moment is None:
        moment = datetime.now(UTC)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    return moment.strftime("%Y%m%d")
