"""Data models for the campus chatbot."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

import numpy as np

Record = Mapping[str, str]


class RecordCategory(StrEnum):
    """Origin of a tabular record; declaration order is the index build order."""

    STUDENT = "student"
    TEACHER = "teacher"
    GUEST_TEACHER = "guest_teacher"
    SCHEDULE = "schedule"
    SUBJECT = "subject"
    FAQ = "faq"
    ROOM = "room"


class QueryType(StrEnum):
    """Category a question is about, as decided by the keyword classifier."""

    STUDENT = "student"
    TEACHER = "teacher"
    SCHEDULE = "schedule"
    SUBJECT = "subject"
    ROOM = "room"
    GENERAL = "general"


class Role(StrEnum):
    """Speaker of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"


def freeze_record(row: Mapping[str, str | None]) -> Record:
    """Return a read-only copy of a CSV row with missing cells as empty strings."""
    return MappingProxyType({
        str(key).strip(): (value or "").strip()
        for key, value in row.items()
        if key is not None
    })


@dataclass(frozen=True)
class TabularStore:
    """All record collections of one load pass."""

    students: tuple[Record, ...] = ()
    teachers: tuple[Record, ...] = ()
    guest_teachers: tuple[Record, ...] = ()
    schedule: tuple[Record, ...] = ()
    subjects: tuple[Record, ...] = ()
    faqs: tuple[Record, ...] = ()
    rooms: tuple[Record, ...] = ()

    @classmethod
    def from_rows(
        cls, rows: Mapping[RecordCategory, list[Mapping[str, str | None]]]
    ) -> TabularStore:
        """Build a store from raw rows keyed by category.

        Returns:
            TabularStore with every row frozen; absent categories are empty.
        """
        frozen = {
            _FIELD_BY_CATEGORY[category]: tuple(freeze_record(row) for row in values)
            for category, values in rows.items()
        }
        return cls(**frozen)

    def records(self, category: RecordCategory) -> tuple[Record, ...]:
        """Return the collection for a category."""
        return getattr(self, _FIELD_BY_CATEGORY[category])

    def counts(self) -> dict[RecordCategory, int]:
        """Return the number of records per category, in build order."""
        return {category: len(self.records(category)) for category in RecordCategory}

    def __len__(self) -> int:
        return sum(self.counts().values())


_FIELD_BY_CATEGORY: dict[RecordCategory, str] = {
    RecordCategory.STUDENT: "students",
    RecordCategory.TEACHER: "teachers",
    RecordCategory.GUEST_TEACHER: "guest_teachers",
    RecordCategory.SCHEDULE: "schedule",
    RecordCategory.SUBJECT: "subjects",
    RecordCategory.FAQ: "faqs",
    RecordCategory.ROOM: "rooms",
}


@dataclass(frozen=True, eq=False)
class KnowledgeEntry:
    """A record rendered as a sentence together with its embedding.

    An empty embedding means the embedding call failed; such entries are kept
    for completeness but never ranked.
    """

    text: str
    record: Record
    embedding: np.ndarray
    category: RecordCategory

    @property
    def is_searchable(self) -> bool:
        """Non-empty, finite and not all zeros, so it can be unit-normalized."""
        return (
            self.embedding.size > 0
            and bool(np.all(np.isfinite(self.embedding)))
            and bool(np.any(self.embedding))
        )


@dataclass(frozen=True)
class ConversationTurn:
    """Represents a single message in a user's conversation."""

    role: Role
    content: str


@dataclass(frozen=True)
class QueryAnalysis:
    """Outcome of classifying a raw question."""

    needs_full_dataset: bool = False
    query_type: QueryType = QueryType.GENERAL
    category: str = "general"


@dataclass(frozen=True)
class BuiltContext:
    """Context block and dataset summary injected into the prompt."""

    context: str
    dataset_info: str
