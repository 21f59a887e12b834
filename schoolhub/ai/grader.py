import logging
import re
from typing import Dict, Any, List

import requests
from supabase import Client

from schoolhub.core.config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an intelligent grading assistant for teachers. Analyze student submissions and provide:
1. A grade out of 100
2. Detailed, constructive feedback highlighting strengths and areas for improvement
3. Specific suggestions for enhancement

Be fair, encouraging, and educational in your assessment."""

DEFAULT_GRADE = 75
MAX_GRADE = 100

# First standalone 1-3 digit number in the model's reply
_GRADE_PATTERN = re.compile(r"\b(\d{1,3})\b")

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
CREDITS_MESSAGE = "AI usage limit reached. Please add credits to continue."


class AIGradingError(Exception):
    """Raised when grading cannot go ahead; carries the status to hand back."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def extract_grade(text: str) -> int:
    """
    Pull a grade out of free text.

    Takes the first 1-3 digit number, caps it at 100, and falls back to 75
    when the text has no number at all.
    """
    match = _GRADE_PATTERN.search(text or "")
    if not match:
        return DEFAULT_GRADE
    return min(int(match.group(1)), MAX_GRADE)


def build_messages(assignment_title: str, content: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                f"Assignment: {assignment_title}\n\n"
                f"Student Submission:\n{content}\n\n"
                "Please provide a grade (0-100) and detailed feedback."
            ),
        },
    ]


def request_feedback(assignment_title: str, content: str) -> str:
    """Single call to the chat completion gateway. No retries."""
    if not settings.AI_GATEWAY_API_KEY:
        raise AIGradingError("AI_GATEWAY_API_KEY is not configured")

    response = requests.post(
        settings.AI_GATEWAY_URL,
        headers={
            "Authorization": f"Bearer {settings.AI_GATEWAY_API_KEY}",
            "Content-Type": "application/json",
        },
        json={
            "model": settings.AI_GRADING_MODEL,
            "messages": build_messages(assignment_title, content),
        },
        timeout=settings.AI_GATEWAY_TIMEOUT,
    )

    if response.status_code == 429:
        raise AIGradingError(RATE_LIMIT_MESSAGE, 429)
    if response.status_code == 402:
        raise AIGradingError(CREDITS_MESSAGE, 402)
    if not response.ok:
        raise AIGradingError(f"AI gateway error: {response.status_code}")

    data = response.json()
    return data["choices"][0]["message"]["content"]


def grade_submission_with_ai(
    db: Client,
    submission_id: str,
    content: str,
    assignment_title: str,
) -> Dict[str, Any]:
    """
    Grade a submission through the AI gateway and store the result.

    The submission row gets the suggested grade and the full reply as
    ai_feedback, overwriting whatever was there.
    """
    feedback = request_feedback(assignment_title, content)
    grade = extract_grade(feedback)

    logger.info("AI suggested grade %s for submission %s", grade, submission_id)
    db.table("assignment_submissions").update({
        "ai_feedback": feedback,
        "grade": grade,
    }).eq("id", submission_id).execute()

    return {"grade": grade, "feedback": feedback}
