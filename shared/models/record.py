"""Pydantic models for store records and the objects pushed to the search index.

Hierarchy:
  Record       one document of the store, its id plus the opaque field mapping.
  IndexObject  a Record projected for the search index, keyed by objectID.
  PurgeQuery   "every record in <collection> where <field> == <value>".
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    """A single document as read from the store.

    The field mapping is never interpreted, only copied.
    """

    id: str
    data: dict[str, Any] = {}


class IndexObject(BaseModel):
    """A Record's fields plus ``objectID`` set to the Record's id.

    objectID always equals the originating record id, even when the record
    itself carries a field named objectID.
    """

    model_config = ConfigDict(extra="allow")

    objectID: str

    @classmethod
    def from_record(cls, record: Record) -> "IndexObject":
        """Project a store record into an index object.

        Args:
            record (Record): The record to project.

        Returns:
            IndexObject: All record fields unchanged, plus objectID.
        """
        return cls.model_validate({**record.data, "objectID": record.id})


class PurgeQuery(BaseModel):
    """Identifies the records a purge deletes. Also used as the store's query handle."""

    model_config = ConfigDict(frozen=True)

    collection: str
    field: str
    value: Any

    def describe(self) -> str:
        return f"{self.collection} where {self.field} == {self.value!r}"
