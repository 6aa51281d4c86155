# server/schemas.py
"""
Pydantic schemas for the lesson planner backend.

This file defines:
- the generated payload          (PlanContent)
- persisted records              (Plan, PlanMeta, SignaturePair)
- the transport-only attachment  (Attachment)
- HTTP payloads                  (SessionStateOut, HistoryRowOut, SignaturesIn)
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Attachment (never persisted)
# ---------------------------------------------------------------------------

class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    mime_type: str
    # base64 text, no "data:...;base64," prefix
    data: str


# ---------------------------------------------------------------------------
# Generated lesson plan
# ---------------------------------------------------------------------------

PLAN_FIELDS = (
    "concepts",
    "learning_outcomes",
    "pedagogical_strategies",
    "assessment_format",
    "resources",
    "real_life_applications",
    "values_skills",
    "reflections_and_remedial_plan",
)


class PlanContent(BaseModel):
    """The eight-section structure the generation provider must return."""

    model_config = ConfigDict(frozen=True)

    concepts: List[str]
    learning_outcomes: List[str]
    pedagogical_strategies: List[str]
    assessment_format: List[str]
    resources: List[str]
    real_life_applications: List[str]
    values_skills: List[str]
    reflections_and_remedial_plan: List[str]

    @field_validator(*PLAN_FIELDS, mode="after")
    @classmethod
    def _non_empty_items(cls, items: List[str]) -> List[str]:
        cleaned = [item.strip() for item in items]
        if any(not item for item in cleaned):
            raise ValueError("list items must be non-empty strings")
        return cleaned


class PlanMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    class_number: str
    subject: str
    date_range: str


class Plan(PlanContent):
    id: str
    # milliseconds since epoch
    timestamp: int
    meta: PlanMeta


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------

class SignaturePair(BaseModel):
    model_config = ConfigDict(frozen=True)

    # image references, usually data URLs
    teacher: Optional[str] = None
    principal: Optional[str] = None


class SignaturesIn(SignaturePair):
    pass


# ---------------------------------------------------------------------------
# Session / views
# ---------------------------------------------------------------------------

SessionStatus = Literal[
    "idle", "validating", "encoding", "requesting", "succeeded", "failed"
]


class SessionStateOut(BaseModel):
    state: SessionStatus = "idle"
    is_loading: bool = False
    error: Optional[str] = None
    storage_warning: Optional[str] = None
    active_plan: Optional[Plan] = None


class HistoryRowOut(BaseModel):
    id: str
    generated_at: str
    class_number: str
    subject: str
    date_range: str


class HistoryOut(BaseModel):
    plans: List[Plan] = Field(default_factory=list)
