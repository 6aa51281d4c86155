# server/llm.py
# ---------------------------------------------------------
# Lesson plan generation against the Anthropic Messages API.
#
# Public helpers:
#   - build_system_instruction(bilingual)
#   - build_prompt(class_number, subject, date_range, prior_remedial_notes)
#   - build_attachment_block(attachment)
#   - parse_plan_content(raw)
#   - PlanGenerationClient.generate(...)
#
# Single attempt, no fallback plan: any failure becomes
# GenerationFailedError and the cause is only printed.
# ---------------------------------------------------------

import base64
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from anthropic import AsyncAnthropic
from dotenv import load_dotenv
from pydantic import ValidationError

from .errors import GenerationFailedError
from .schemas import PLAN_FIELDS, Attachment, PlanContent

# .../lesson_planner/server
BASE_DIR = Path(__file__).resolve().parent
# repo root
ROOT_DIR = BASE_DIR.parent.parent

load_dotenv(ROOT_DIR / ".env")
load_dotenv()

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
MODEL = os.getenv("ANTHROPIC_MODEL") or "claude-sonnet-4-5-20250929"

TEMPERATURE = 0.5
MAX_TOKENS = 4096

client: Optional[AsyncAnthropic] = None
if ANTHROPIC_API_KEY:
    client = AsyncAnthropic(api_key=ANTHROPIC_API_KEY)
    prefix = (
        ANTHROPIC_API_KEY[:8] + "..."
        if len(ANTHROPIC_API_KEY or "") >= 8
        else "(short key)"
    )
    print("[llm] Anthropic client initialized; key prefix:", prefix)
    print("[llm] Using Anthropic model:", MODEL)
else:
    print("[llm] No ANTHROPIC_API_KEY found. Plan generation will fail until one is set.")


# -------------------------------------------------------------------
# Output schema
# -------------------------------------------------------------------

_FIELD_DESCRIPTIONS: Dict[str, str] = {
    "concepts": "Key concepts to be covered in this lesson plan period.",
    "learning_outcomes": "Specific, measurable learning outcomes students should achieve.",
    "pedagogical_strategies": (
        "Teaching methods and strategies to be used "
        "(e.g., lecture, group discussion, project-based learning)."
    ),
    "assessment_format": (
        "Methods for assessing student learning "
        "(e.g., MCQs, short answers, practical exam)."
    ),
    "resources": "Required resources like textbooks, websites, software, or lab equipment.",
    "real_life_applications": "Examples of how the concepts apply to real-world scenarios.",
    "values_skills": (
        "Values and skills to be inculcated, like critical thinking, "
        "collaboration, or ethical considerations."
    ),
    "reflections_and_remedial_plan": (
        "Reflections on the previous teaching cycle and a concrete remedial "
        "plan for students who need extra support."
    ),
}

PLAN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        name: {
            "type": "array",
            "items": {"type": "string"},
            "description": _FIELD_DESCRIPTIONS[name],
        }
        for name in PLAN_FIELDS
    },
    "required": list(PLAN_FIELDS),
    "additionalProperties": False,
}

BILINGUAL_DIRECTIVE = (
    " Generate a bilingual (English + Hindi) lesson plan. For each point, "
    "provide the English version first, followed by the Hindi version in parentheses."
)


# -------------------------------------------------------------------
# Prompt composition
# -------------------------------------------------------------------

def build_system_instruction(bilingual: bool) -> str:
    instruction = (
        "You are an expert KVS teacher who prepares fortnightly lesson plans in the "
        "NCERT format. Based on the provided split-up syllabus, generate lesson plans "
        "using the official KVS Lesson Organizer structure. Ensure your output is a "
        "valid JSON that adheres to the provided schema."
    )
    if bilingual:
        instruction += BILINGUAL_DIRECTIVE

    instruction += (
        "\n\nReturn ONLY valid JSON matching this schema:\n"
        f"{json.dumps(PLAN_SCHEMA, indent=2)}\n"
    )
    return instruction


def build_prompt(
    class_number: str,
    subject: str,
    date_range: str,
    prior_remedial_notes: Optional[Sequence[str]] = None,
) -> str:
    prompt = (
        "Generate a lesson plan with the following details:\n"
        f"- Class: {class_number}\n"
        f"- Subject: {subject}\n"
        f"- Date Range: {date_range}\n\n"
        "The split-up syllabus is provided in the attached file. "
        "Analyze it and create the lesson plan."
    )

    if prior_remedial_notes:
        joined = " ".join(prior_remedial_notes)
        prompt += (
            "\n\nIMPORTANT: Use the following reflections from the previous lesson "
            "cycle to inform the 'reflections_and_remedial_plan' section for this "
            f'new plan: "{joined}". Create a new, forward-looking remedial plan '
            "based on these past observations."
        )
    return prompt


def build_attachment_block(attachment: Attachment) -> Dict[str, Any]:
    """Map an Attachment onto an Anthropic content block."""
    mime = attachment.mime_type.lower()

    if mime.startswith("image/"):
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": mime, "data": attachment.data},
        }

    if mime.startswith("text/"):
        text = base64.b64decode(attachment.data).decode("utf-8", errors="replace")
        return {
            "type": "document",
            "source": {"type": "text", "media_type": "text/plain", "data": text},
            "title": attachment.name,
        }

    # PDFs and anything else go through as-is; the provider decides.
    return {
        "type": "document",
        "source": {"type": "base64", "media_type": mime, "data": attachment.data},
        "title": attachment.name,
    }


# -------------------------------------------------------------------
# Response parsing
# -------------------------------------------------------------------

def _coerce_json(raw: str) -> Dict[str, Any]:
    """
    Models often wrap JSON in ```json fences or add extra prose.
    Strip fences and grab the first {...} block.
    """
    s = raw.strip()

    if s.startswith("```"):
        lines = s.splitlines()
        if lines and lines[0].strip().startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        s = "\n".join(lines).strip()

    if not s.startswith("{"):
        m = re.search(r"\{.*\}", s, flags=re.S)
        if m:
            s = m.group(0)

    data = json.loads(s)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_plan_content(raw: str) -> PlanContent:
    """Parse provider text into a PlanContent; raises ValueError/ValidationError."""
    return PlanContent.model_validate(_coerce_json(raw))


def _response_text(message: Any) -> str:
    blocks = getattr(message, "content", None) or []
    parts: List[str] = [
        getattr(block, "text", "") for block in blocks if getattr(block, "type", "text") == "text"
    ]
    return "".join(parts)


# -------------------------------------------------------------------
# Client
# -------------------------------------------------------------------

class PlanGenerationClient:
    """
    Wraps the provider call. ``api`` defaults to the module-level
    AsyncAnthropic client built from ANTHROPIC_API_KEY.
    """

    def __init__(
        self,
        api: Optional[AsyncAnthropic] = None,
        model: str = MODEL,
        temperature: float = TEMPERATURE,
        max_tokens: int = MAX_TOKENS,
    ):
        self._api = api if api is not None else client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(
        self,
        class_number: str,
        subject: str,
        date_range: str,
        attachment: Attachment,
        bilingual: bool = False,
        prior_remedial_notes: Optional[Sequence[str]] = None,
    ) -> PlanContent:
        if self._api is None:
            print("[llm] Generation requested but no Anthropic client is configured.")
            raise GenerationFailedError()

        system = build_system_instruction(bilingual)
        prompt = build_prompt(class_number, subject, date_range, prior_remedial_notes)

        try:
            content = [{"type": "text", "text": prompt}, build_attachment_block(attachment)]
            print(f"[llm] Generating plan: class={class_number!r} subject={subject!r}")
            message = await self._api.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system,
                messages=[{"role": "user", "content": content}],
            )
        except Exception as e:
            print("[llm] Plan request failed:", repr(e))
            raise GenerationFailedError() from e

        raw = _response_text(message)
        print("[llm] Plan raw JSON (first 200 chars):", raw[:200])

        try:
            return parse_plan_content(raw)
        except (ValueError, ValidationError) as e:
            print("[llm] Provider response did not match the plan schema:", repr(e))
            raise GenerationFailedError() from e
