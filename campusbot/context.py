"""Building the data context that is injected into the generation prompt."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import config
from .models import BuiltContext, QueryAnalysis, QueryType, RecordCategory

if TYPE_CHECKING:
    import numpy as np

    from .models import TabularStore
    from .pipeline import KnowledgeSnapshot

logger = config.get_logger(__name__)

RETRIEVAL_FAN_OUT = 8

MALE = "ชาย"
FEMALE = "หญิง"

COLLEGE_INFO = {
    "name": "วิทยาลัยเทคนิคเชียงใหม่",
    "short_name": "CMTC",
    "director": "ดร.วัชรพงศ์ ฝั้นติ๊บ",
    "department": {
        "name": "แผนกเทคโนโลยีสารสนเทศ",
        "head": "อาจารย์ฐาปนันท์ ปัญญามี",
        "deputy_head": "อาจารย์อนุชาติ รังสิยานนท์",
        "email": "itcmtc@cmtc.ac.th",
        "phone": "053 217 708-9",
    },
    "class_representatives": {
        "head": "นายพัฒนกุล เทปิน",
        "deputy": "นายนฤดล",
    },
    "schedule": (
        "จันทร์-พฤหัสบดี เวลา 18:00-21:00 (เรียนที่วิทยาลัย)",
        "ศุกร์ เวลา 18:00-21:00 (เรียนออนไลน์)",
        "เสาร์ เวลา 08:00-16:00 (เรียนที่วิทยาลัยเต็มวัน)",
        "อาทิตย์ โฮมรูมออนไลน์",
    ),
}


def render_college_info(info: dict) -> str:
    """Render the static college facts block."""
    department = info["department"]
    representatives = info["class_representatives"]
    lines = [
        "ข้อมูลวิทยาลัย:",
        f"- ชื่อ: {info['name']} ({info['short_name']})",
        f"- ผู้อำนวยการ: {info['director']}",
        f"- หัวหน้าแผนก IT: {department['head']}",
        f"- รองหัวหน้าแผนก IT: {department['deputy_head']}",
        f"- หัวหน้าห้อง: {representatives['head']}",
        f"- รองหัวหน้าห้อง: {representatives['deputy']}",
        f"- อีเมลแผนก: {department['email']}",
        f"- เบอร์โทร: {department['phone']}",
        "",
        "ช่วงเวลาเรียน:",
        *info["schedule"],
    ]
    return "\n".join(lines)


def summarize_counts(store: TabularStore) -> str:
    """One-line parenthetical summary of how many records each table holds."""
    counts = store.counts()
    return (
        "(ข้อมูลในระบบ: "
        f"{counts[RecordCategory.STUDENT]} นักเรียน, "
        f"{counts[RecordCategory.TEACHER]} อาจารย์ประจำแผนก, "
        f"{counts[RecordCategory.GUEST_TEACHER]} อาจารย์พิเศษ, "
        f"{counts[RecordCategory.SCHEDULE]} ตารางเรียน, "
        f"{counts[RecordCategory.SUBJECT]} วิชา, "
        f"{counts[RecordCategory.FAQ]} คำถามที่พบบ่อย, "
        f"{counts[RecordCategory.ROOM]} ห้อง)"
    )


def student_digest(store: TabularStore) -> str:
    """Every student, then a count by the two recognised gender values.

    Rows whose gender is neither value are listed but not counted.
    """
    lines = [f"นักเรียนทั้งหมด {len(store.students)} คน:"]
    lines.extend(
        f"- หมายเลข {s.get('number', '')}: {s.get('name', '')} "
        f"({s.get('gender', '')}) {s.get('role') or 'นักเรียน'}"
        for s in store.students
    )
    male = sum(1 for s in store.students if s.get("gender") == MALE)
    female = sum(1 for s in store.students if s.get("gender") == FEMALE)
    lines.extend(["", f"สรุป: {MALE} {male} คน, {FEMALE} {female} คน"])
    return "\n".join(lines)


def teacher_digest(store: TabularStore) -> str:
    """Department teachers, with guest teachers in a separate block."""
    lines = [f"อาจารย์ประจำแผนก IT ทั้งหมด {len(store.teachers)} คน:"]
    lines.extend(
        f"- {t.get('name', '')} ({t.get('position') or 'ครูประจำแผนก'}) "
        f"เชี่ยวชาญ {t.get('specialize', '')}"
        for t in store.teachers
    )

    if store.guest_teachers:
        lines.extend(
            ["", f"อาจารย์พิเศษ/ผู้บริหารที่มาสอน {len(store.guest_teachers)} คน:"]
        )
        lines.extend(
            f"- {gt.get('name', '')} ({gt.get('position', '')}) "
            f"สอนวิชา {gt.get('teaches_subject', '')}"
            for gt in store.guest_teachers
        )
    return "\n".join(lines)


def schedule_digest(store: TabularStore) -> str:
    lines = [f"ตารางเรียนทั้งหมด {len(store.schedule)} รายการ:"]
    lines.extend(
        f"- วัน{sc.get('day', '')} {sc.get('time_start', '')}-{sc.get('time_end', '')}: "
        f"{sc.get('subject_name', '')} โดย {sc.get('teacher', '')} "
        f"ห้อง {sc.get('room', '')}"
        for sc in store.schedule
    )
    return "\n".join(lines)


def overall_digest(store: TabularStore) -> str:
    counts = store.counts()
    return "\n".join([
        "สรุปข้อมูลทั้งหมด:",
        f"- นักเรียน: {counts[RecordCategory.STUDENT]} คน",
        f"- อาจารย์ประจำแผนก IT: {counts[RecordCategory.TEACHER]} คน",
        f"- อาจารย์พิเศษ/ผู้บริหาร: {counts[RecordCategory.GUEST_TEACHER]} คน",
        f"- ตารางเรียน: {counts[RecordCategory.SCHEDULE]} รายการ",
        f"- วิชาเรียน: {counts[RecordCategory.SUBJECT]} วิชา",
        f"- คำถามที่พบบ่อย: {counts[RecordCategory.FAQ]} รายการ",
        f"- ห้องเรียน: {counts[RecordCategory.ROOM]} ห้อง",
    ])


FULL_DIGESTS = {
    QueryType.STUDENT: student_digest,
    QueryType.TEACHER: teacher_digest,
    QueryType.SCHEDULE: schedule_digest,
}


class ContextBuilder:
    """Chooses between a full-table digest and top-K retrieval."""

    def __init__(
        self,
        fan_out: int = RETRIEVAL_FAN_OUT,
        college_info: dict | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            fan_out: Number of knowledge entries pulled for targeted lookups.
            college_info: Static facts prefixed to every context. If None,
                uses COLLEGE_INFO.
        """
        self.fan_out = fan_out
        self.college_context = render_college_info(college_info or COLLEGE_INFO)

    def build(
        self,
        question: str,
        analysis: QueryAnalysis,
        query_vector: np.ndarray,
        snapshot: KnowledgeSnapshot,
    ) -> BuiltContext:
        """Build the context block for one question.

        Counting and listing questions get an exhaustive digest of the relevant
        table, since similarity search over a few dozen rows cannot answer
        "how many". Everything else gets the most similar entries.

        Returns:
            BuiltContext with the context text and a dataset count summary.
        """
        store = snapshot.store
        dataset_info = summarize_counts(store)

        if analysis.needs_full_dataset:
            digest = FULL_DIGESTS.get(analysis.query_type, overall_digest)(store)
            logger.info(
                "Using full %s dataset for question: %s",
                analysis.query_type.value,
                question,
            )
            return BuiltContext(
                context=f"{self.college_context}\n\n{digest}",
                dataset_info=dataset_info,
            )

        results = snapshot.index.search(query_vector, self.fan_out)
        logger.info("Retrieved %d knowledge entries", len(results))
        for i, (entry, score) in enumerate(results):
            logger.debug(
                "  Context %d: %s (score: %.4f)", i + 1, entry.category.value, score
            )

        related = "\n".join(entry.text for entry, _ in results)
        return BuiltContext(
            context=f"{self.college_context}\n\nข้อมูลที่เกี่ยวข้อง:\n{related}",
            dataset_info=dataset_info,
        )
