"""
Triage priority classification for free-text symptom descriptions.
"""

from typing import Optional, Protocol, Sequence
import logging

from app.domain.appointments.models import PriorityLevel

logger = logging.getLogger(__name__)

URGENT_KEYWORDS: Sequence[str] = (
    "emergency",
    "severe",
    "acute",
    "urgent",
    "critical",
    "bleeding",
    "chest pain",
    "stroke",
    "difficulty breathing",
    "overdose",
)

MODERATE_KEYWORDS: Sequence[str] = (
    "pain",
    "fever",
    "infection",
    "injury",
    "fracture",
    "burn",
    "vomiting",
    "diarrhea",
)

TRIAGE_PROMPT = """You are a medical triage assistant. Classify the urgency of the
patient's reported issues for a doctor consultation queue.

- High: possible emergency (e.g. severe or acute symptoms, bleeding, chest pain,
  stroke signs, difficulty breathing, overdose)
- Medium: symptoms that need attention soon (e.g. pain, fever, infection,
  injury, fracture, burn, vomiting, diarrhea)
- Low: routine concerns, check-ups, mild or chronic issues

Answer with exactly one word: High, Medium or Low.

Patient issues: {issues}
"""


class TextGenerator(Protocol):
    async def generate_content(self, prompt: str) -> str: ...


def classify_by_keywords(issues: str) -> PriorityLevel:
    """Deterministic keyword rule; urgent keywords win over moderate ones"""
    text = (issues or "").lower()
    if any(keyword in text for keyword in URGENT_KEYWORDS):
        return PriorityLevel.HIGH
    if any(keyword in text for keyword in MODERATE_KEYWORDS):
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW


def parse_priority(answer: Optional[str]) -> Optional[PriorityLevel]:
    if not answer:
        return None
    for level in (PriorityLevel.HIGH, PriorityLevel.MEDIUM, PriorityLevel.LOW):
        if level.value in answer:
            return level
    return None


class TriageClassifier:
    """Assigns a priority to a booking; never raises"""

    def __init__(self, text_generator: Optional[TextGenerator] = None):
        self.text_generator = text_generator

    async def classify(self, issues: str) -> PriorityLevel:
        if self.text_generator is None:
            return classify_by_keywords(issues)

        try:
            answer = await self.text_generator.generate_content(TRIAGE_PROMPT.format(issues=issues))
            priority = parse_priority(answer)
        except Exception as e:
            logger.warning(f"AI triage failed, falling back to keyword rules: {e}")
            return classify_by_keywords(issues)

        if priority is None:
            logger.warning(f"Unrecognised AI triage answer {answer!r}, falling back to keyword rules")
            return classify_by_keywords(issues)
        return priority
