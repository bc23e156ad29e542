"""Shared pagination schemas for list endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class PaginationLink(BaseModel):
    """One navigational link: href plus the window it points at."""

    model_config = ConfigDict(populate_by_name=True)

    href: str = Field(alias="@href")
    offset: int = Field(ge=0)
    limit: int = Field(gt=0)


class Pagination(BaseModel):
    """The ``@pagination`` block of a collection envelope."""

    limit: int
    offset: int
    count: int
    is_first: bool
    is_last: bool
    next: PaginationLink | None
    prev: PaginationLink | None
    first: PaginationLink
    last: PaginationLink

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)
