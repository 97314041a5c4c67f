"""Pydantic model for an authenticated caller."""

from typing import Any

from pydantic import BaseModel


class Principal(BaseModel):
    """The caller behind a verified bearer credential."""

    uid: str
    email: str | None = None
    claims: dict[str, Any] = {}
