"""
Pytest configuration and fixtures
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from lesson_planner.server.history_repo import HistoryRepo
from lesson_planner.server.llm import PlanGenerationClient
from lesson_planner.server.schemas import Attachment, Plan, PlanMeta
from lesson_planner.server.session import PlanSession
from lesson_planner.server.signature_repo import SignatureRepo
from lesson_planner.server.storage import LocalStorage


def content_dict(tag: str = "A") -> dict:
    """A valid eight-section payload; ``tag`` marks the remedial notes."""
    return {
        "concepts": ["Motion in a straight line"],
        "learning_outcomes": ["Define displacement and velocity"],
        "pedagogical_strategies": ["Demonstration", "Group discussion"],
        "assessment_format": ["MCQs"],
        "resources": ["NCERT textbook"],
        "real_life_applications": ["Speedometers"],
        "values_skills": ["Critical thinking"],
        "reflections_and_remedial_plan": [f"Remedial note {tag}"],
    }


def make_plan(plan_id: str, timestamp: int, subject: str = "Physics",
              class_number: str = "IX", date_range: str = "1-15 Aug",
              tag: str = "A") -> Plan:
    return Plan(
        **content_dict(tag),
        id=plan_id,
        timestamp=timestamp,
        meta=PlanMeta(class_number=class_number, subject=subject, date_range=date_range),
    )


def fake_message(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


class FakeUpload:
    def __init__(self, data: bytes = b"%PDF-1.4 syllabus", filename: str = "syllabus.pdf",
                 content_type: str | None = "application/pdf", fail: bool = False):
        self.filename = filename
        self.content_type = content_type
        self._data = data
        self._fail = fail

    async def read(self) -> bytes:
        if self._fail:
            raise OSError("disk gone")
        return self._data


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "store")


@pytest.fixture
def history(storage) -> HistoryRepo:
    return HistoryRepo(storage)


@pytest.fixture
def signatures(storage) -> SignatureRepo:
    return SignatureRepo(storage)


@pytest.fixture
def fake_api():
    """Stands in for AsyncAnthropic; only messages.create is used."""
    api = SimpleNamespace(messages=SimpleNamespace(create=AsyncMock()))
    api.messages.create.return_value = fake_message(json.dumps(content_dict("NEW")))
    return api


@pytest.fixture
def generator(fake_api) -> PlanGenerationClient:
    return PlanGenerationClient(api=fake_api, model="test-model")


@pytest.fixture
def session(generator, history, signatures) -> PlanSession:
    return PlanSession(generator=generator, history=history, signatures=signatures)


@pytest.fixture
def attachment() -> Attachment:
    return Attachment(name="syllabus.pdf", mime_type="application/pdf", data="JVBERi0xLjQ=")
