from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DateKey = Annotated[str, Field(pattern=r"^\d{8}$", title="Partition date (YYYYMMDD)")]


class CamelModel(BaseModel):
    """Serialized with camelCase keys (fileId, modifiedAt, ...) as the web client expects"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ObjectKey(BaseModel):
    """The three parts of an object identifier"""

    date: str
    owner: str
    name: str

    @property
    def file_id(self) -> str:
        return f"{self.date}/{self.owner}/{self.name}"


class ObjectStat(CamelModel):
    file_id: str
    size: int
    visible: bool


class ObjectRecord(CamelModel):
    file_id: str
    name: str
    size: int
    visible: bool
    owner: str
    modified_at: datetime


class DayEntry(CamelModel):
    date: DateKey
    year: str
    month: str
    day: str
    objects: list[ObjectRecord]

    @classmethod
    def for_date(cls, date: str, objects: list[ObjectRecord]) -> "DayEntry":
        # fixed offsets, no calendar arithmetic
        return cls(date=date, year=date[0:4], month=date[4:6], day=date[6:8], objects=objects)


class DaySummary(CamelModel):
    date: DateKey
    year: str
    month: str
    day: str
    size: int = Field(description="Number of objects in this day")
