"""Knowledge index: records rendered as sentences and searched by cosine similarity."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import numpy as np

from .config import config
from .models import KnowledgeEntry, Record, RecordCategory

if TYPE_CHECKING:
    from .embeddings import EmbeddingService
    from .models import TabularStore

logger = config.get_logger(__name__)


def _describe_student(s: Record) -> str:
    return (
        f"นักเรียนหมายเลข {s.get('number', '')} ชื่อ {s.get('name', '')} "
        f"เพศ {s.get('gender', '')} "
        f"แผนก {s.get('department') or 'เทคโนโลยีสารสนเทศ'} {s.get('role') or 'นักเรียน'}"
    )


def _describe_teacher(t: Record) -> str:
    return (
        f"อาจารย์ {t.get('name', '')} ตำแหน่ง {t.get('position') or 'ครูประจำแผนก'} "
        f"เชี่ยวชาญด้าน {t.get('specialize', '')} "
        f"สาขา {t.get('field') or 'เทคโนโลยีสารสนเทศ'}"
    )


def _describe_guest_teacher(gt: Record) -> str:
    return (
        f"{gt.get('name', '')} {gt.get('position') or 'อาจารย์พิเศษ'} "
        f"จาก{gt.get('field', '')} มาสอนวิชา {gt.get('teaches_subject', '')} "
        "ให้แผนก IT"
    )


def _describe_schedule(sc: Record) -> str:
    return (
        f"วิชา {sc.get('subject_name', '')} รหัส {sc.get('subject_code', '')} "
        f"สอนโดย {sc.get('teacher', '')} วัน{sc.get('day', '')} "
        f"เวลา {sc.get('time_start', '')}-{sc.get('time_end', '')} "
        f"ห้อง {sc.get('room', '')} ตึก {sc.get('building', '')} "
        f"{sc.get('type') or 'on-site'}"
    )


def _describe_subject(sub: Record) -> str:
    return (
        f"วิชา {sub.get('name', '')} รหัส {sub.get('code', '')} "
        f"{sub.get('credits', '')} หน่วยกิต {sub.get('description', '')}"
    )


def _describe_faq(faq: Record) -> str:
    return (
        f"คำถาม: {faq.get('question', '')} คำตอบ: {faq.get('answer', '')} "
        f"หมวด {faq.get('category', '')}"
    )


def _describe_room(rm: Record) -> str:
    return (
        f"ห้อง {rm.get('room_number', '')} ตึก {rm.get('building', '')} "
        f"ความจุ {rm.get('capacity', '')} คน "
        f"สิ่งอำนวยความสะดวก {rm.get('facilities', '')} "
        f"แผนก {rm.get('department', '')}"
    )


DESCRIBERS: dict[RecordCategory, Callable[[Record], str]] = {
    RecordCategory.STUDENT: _describe_student,
    RecordCategory.TEACHER: _describe_teacher,
    RecordCategory.GUEST_TEACHER: _describe_guest_teacher,
    RecordCategory.SCHEDULE: _describe_schedule,
    RecordCategory.SUBJECT: _describe_subject,
    RecordCategory.FAQ: _describe_faq,
    RecordCategory.ROOM: _describe_room,
}


def describe_record(record: Record, category: RecordCategory) -> str:
    """Render a record as a natural-language sentence for its category.

    Field positions are fixed per category; missing fields render as empty
    strings so the sentence shape stays the same for every row.

    Returns:
        The descriptive sentence.
    """
    return DESCRIBERS[category](record)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm.

    Returns:
        Similarity in [-1, 1].
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


class KnowledgeIndex:
    """Immutable collection of knowledge entries with similarity search."""

    def __init__(self, entries: Sequence[KnowledgeEntry] = ()) -> None:
        """Wrap already-built entries; insertion order is the tie-break order."""
        self.entries: tuple[KnowledgeEntry, ...] = tuple(entries)

    @classmethod
    def build(
        cls,
        store: TabularStore,
        embedding_service: EmbeddingService,
    ) -> KnowledgeIndex:
        """Render and embed every record of a store.

        Categories are processed in the fixed order students, teachers,
        guest teachers, schedule, subjects, FAQs, rooms. Every embedding call
        completes before the index is returned.

        Returns:
            A new KnowledgeIndex with one entry per record.
        """
        pending: list[tuple[str, Record, RecordCategory]] = [
            (describe_record(record, category), record, category)
            for category in RecordCategory
            for record in store.records(category)
        ]

        embeddings = embedding_service.get_embeddings([text for text, _, _ in pending])

        entries = [
            KnowledgeEntry(
                text=text,
                record=record,
                embedding=np.asarray(embedding, dtype=np.float32),
                category=category,
            )
            for (text, record, category), embedding in zip(
                pending, embeddings, strict=True
            )
        ]

        index = cls(entries)
        logger.info(
            "Knowledge base built with %d entries (%d searchable)",
            len(index),
            index.searchable_count,
        )
        return index

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def searchable_count(self) -> int:
        return sum(1 for entry in self.entries if entry.is_searchable)

    def search(
        self,
        query_vector: np.ndarray,
        k: int | None = None,
        category: RecordCategory | None = None,
    ) -> list[tuple[KnowledgeEntry, float]]:
        """Rank entries against a query vector.

        Args:
            query_vector: Embedding of the question.
            k: Maximum number of results. If None, uses config.TOP_K.
            category: Restrict the search to one record category.

        Returns:
            Up to k (entry, score) pairs by descending cosine similarity; equal
            scores keep insertion order. Entries without a usable embedding are
            never returned.
        """
        if k is None:
            k = config.TOP_K
        query = np.asarray(query_vector, dtype=np.float32).ravel()
        if k <= 0 or query.size == 0:
            return []

        scored: list[tuple[KnowledgeEntry, float]] = []
        for entry in self.entries:
            if category is not None and entry.category != category:
                continue
            if not entry.is_searchable:
                continue
            if entry.embedding.shape != query.shape:
                logger.warning(
                    "Skipping %s entry with dimension %d (query has %d)",
                    entry.category.value,
                    entry.embedding.size,
                    query.size,
                )
                continue
            scored.append((entry, cosine_similarity(query, entry.embedding)))

        # sorted() is stable, so equal scores stay in insertion order
        scored = sorted(scored, key=lambda item: item[1], reverse=True)
        return scored[:k]
