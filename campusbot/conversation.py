"""Answer generation with retrieved context and per-user history."""

from __future__ import annotations

from collections.abc import Sequence

from openai import OpenAI, OpenAIError

from .classifier import classify_query
from .config import config
from .context import ContextBuilder
from .memory import ConversationMemory
from .models import BuiltContext, ConversationTurn, Role
from .pipeline import KnowledgePipeline

logger = config.get_logger(__name__)

EMBEDDING_FAILED_REPLY = "ขอภัย ไม่สามารถประมวลผลคำถามได้ในขณะนี้"
GENERATION_FAILED_REPLY = "ขออภัย เกิดข้อผิดพลาดในการประมวลผล กรุณาลองใหม่อีกครั้ง"

SYSTEM_INSTRUCTION = """คุณคือ CMTC IT Chatbot ผู้ช่วยตอบคำถามเกี่ยวกับแผนกเทคโนโลยีสารสนเทศ วิทยาลัยเทคนิคเชียงใหม่

หลักการตอบคำถาม:
- ตอบตามข้อมูลที่ให้มาเท่านั้น ห้ามสมมติข้อมูล
- ถ้าถามจำนวน ให้นับตามข้อมูลจริง
- ถ้าถาม "อาจารย์แผนก IT" หรือ "อาจารย์ประจำแผนก" ให้ตอบเฉพาะอาจารย์ในแผนก IT เท่านั้น (ไม่รวมอาจารย์พิเศษ/ผู้บริหาร)
- ถ้าถาม "อาจารย์ที่มาสอน" หรือ "อาจารย์ผู้สอนวิชา" ให้ตอบทั้งอาจารย์ประจำแผนกและอาจารย์พิเศษ
- ถ้าถามตารางเรียน ให้ระบุวัน เวลา ห้อง และอาจารย์ผู้สอน
- ถ้าคำถามคลุมเครือ ให้ดูจากประวัติการสนทนา
- ตอบสั้น กระชับ เป็นธรรมชาติ เป็นมิตร
- ใช้ภาษาไทยในการตอบ
- ถ้าไม่มีข้อมูล ให้บอกตรงๆ ว่าไม่มีข้อมูล"""  # noqa: E501

SPEAKER_LABELS = {Role.USER: "ผู้ใช้", Role.ASSISTANT: "Bot"}


def render_transcript(history: Sequence[ConversationTurn]) -> str:
    """Render prior turns as a transcript block, or '' when there are none."""
    if not history:
        return ""
    lines = [f"{SPEAKER_LABELS[turn.role]}: {turn.content}" for turn in history]
    return "ประวัติการสนทนา:\n" + "\n".join(lines)


class AnswerGenerator:
    """Answers questions for both the HTTP endpoint and the LINE webhook."""

    def __init__(
        self,
        pipeline: KnowledgePipeline,
        memory: ConversationMemory | None = None,
        openai_api_key: str | None = None,
        context_builder: ContextBuilder | None = None,
    ) -> None:
        """Initialize AnswerGenerator.

        Args:
            pipeline: Knowledge pipeline holding the current snapshot.
            memory: Conversation memory shared by all front ends.
            openai_api_key: Provider API key for chat completions.
            context_builder: Context builder. If None, uses the defaults.
        """
        self.pipeline = pipeline
        self.memory = memory if memory is not None else ConversationMemory()
        self.context_builder = context_builder or ContextBuilder()
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=openai_api_key or config.get_openai_api_key() or "missing",
            base_url=config.OPENAI_BASE_URL,
            default_headers=default_headers or None,
        )
        self.temperature = config.CHAT_TEMPERATURE
        self.max_tokens = config.CHAT_MAX_TOKENS

    @staticmethod
    def build_prompt(
        question: str,
        built: BuiltContext,
        history: Sequence[ConversationTurn] = (),
    ) -> str:
        """Assemble the final prompt sent to the chat model.

        Returns:
            str: Instruction, data context, dataset summary, transcript and
                the question, in that order.
        """
        transcript = render_transcript(history)
        sections = [SYSTEM_INSTRUCTION, built.context, built.dataset_info]
        if transcript:
            sections.append(transcript)
        sections.append(f"คำถาม: {question}")
        sections.append("กรุณาตอบคำถามตามข้อมูลที่มีเท่านั้น")
        return "\n\n".join(sections)

    def complete(self, prompt: str) -> str:
        """Call the chat model with the low-temperature, bounded configuration.

        Returns:
            str: The model's answer text.

        Raises:
            ValueError: If the model returned no content.
        """
        response = self.client.chat.completions.create(
            model=config.CHAT_MODEL,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        answer = response.choices[0].message.content
        if not answer:
            msg = "Chat model returned an empty response"
            raise ValueError(msg)
        return answer

    def generate(self, question: str, user_id: str = "default") -> str:
        """Answer a question for a user.

        Failed turns return a fixed apology and leave the user's history
        untouched.

        Returns:
            str: The answer text, verbatim from the model, or an apology.
        """
        logger.info("Processing question from %s: %s", user_id, question)

        query_vector = self.pipeline.embed_query(question)
        if query_vector.size == 0:
            logger.warning("Question could not be embedded; aborting")
            return EMBEDDING_FAILED_REPLY

        analysis = classify_query(question)
        logger.info(
            "Query analysis: type=%s full_dataset=%s",
            analysis.query_type.value,
            analysis.needs_full_dataset,
        )

        built = self.context_builder.build(
            question, analysis, query_vector, self.pipeline.snapshot
        )
        prompt = self.build_prompt(question, built, self.memory.get(user_id))

        try:
            answer = self.complete(prompt)
        except (OpenAIError, ValueError, IndexError, AttributeError):
            logger.exception("Chat completion failed")
            return GENERATION_FAILED_REPLY

        self.memory.record_exchange(user_id, question, answer)
        return answer
