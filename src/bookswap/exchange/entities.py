"""Entities hydrated from exchange table rows."""

import dataclasses
from dataclasses import dataclass, field
from typing import Any

AVAILABLE_STATUS_ID = 1


class _Entity:
    __slots__ = ()

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True, slots=True)
class User(_Entity):
    id: int
    username: str
    email: str
    password: str = field(repr=False)
    avatar: str | None = None


@dataclass(frozen=True, slots=True)
class BookStatus(_Entity):
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class Book(_Entity):
    id: int
    title: str
    author: str | None
    image: str | None
    description: str | None
    user_id: int
    status_id: int

    @property
    def available(self) -> bool:
        return self.status_id == AVAILABLE_STATUS_ID
