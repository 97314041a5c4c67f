from typing import Literal

from pydantic import BaseModel

from shared.models.record import PurgeQuery


class AcceptedResponse(BaseModel):
    """Acknowledgement of a protocol that keeps running in the background."""

    status: Literal["accepted"] = "accepted"
    task: str
    query: PurgeQuery | None = None
