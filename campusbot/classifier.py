"""Keyword-based classification of incoming questions."""

from .models import QueryAnalysis, QueryType

# Counting or listing intent: answer from the whole table, not from top-K.
AGGREGATE_KEYWORDS: tuple[str, ...] = (
    "กี่คน",
    "ทั้งหมด",
    "จำนวน",
    "มีกี่",
    "นับ",
    "ทั้งหมดกี่",
    "รายชื่อ",
)

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[QueryType, str, tuple[str, ...]], ...] = (
    (QueryType.STUDENT, "students", ("นักเรียน", "นักศึกษา", "ผู้เรียน")),
    (QueryType.TEACHER, "teachers", ("อาจารย์", "ครู", "ผู้สอน")),
    (QueryType.SCHEDULE, "schedule", ("ตาราง", "เรียน", "วัน", "เวลา")),
    (QueryType.SUBJECT, "subjects", ("วิชา", "รายวิชา")),
    (QueryType.ROOM, "rooms", ("ห้อง", "ตึก")),
)


def classify_query(question: str) -> QueryAnalysis:
    """Classify a question by substring matching.

    Returns:
        QueryAnalysis with the full-dataset flag and the first matching
        category, or the general category when nothing matches.
    """
    needs_full_dataset = any(keyword in question for keyword in AGGREGATE_KEYWORDS)

    for query_type, category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in question for keyword in keywords):
            return QueryAnalysis(
                needs_full_dataset=needs_full_dataset,
                query_type=query_type,
                category=category,
            )

    return QueryAnalysis(needs_full_dataset=needs_full_dataset)
