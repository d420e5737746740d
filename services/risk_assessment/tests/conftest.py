from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable

import pytest

from services.risk_assessment.models import QuestionType
from services.risk_assessment.records import AdviceBandRecord, OptionRecord, QuestionRecord
from services.risk_assessment.store import StoreError, StoreResult


@pytest.fixture
def anyio_backend():
    # Force asyncio backend so tests don't require trio.
    return "asyncio"


class FakeConfigStore:
    """In-memory ConfigStore; set ``failing`` to make an operation return an error."""

    def __init__(self, questions=(), options=(), bands=(), failing=()):
        self.questions = list(questions)
        self.options = list(options)
        self.bands = list(bands)
        self.failing = set(failing)
        self.calls: list[str] = []

    def _result(self, operation: str, data):
        self.calls.append(operation)
        if operation in self.failing or "*" in self.failing:
            return StoreResult(error=StoreError(operation, "store unavailable"))
        return StoreResult(data=data)

    def _with_options(self, q: QuestionRecord) -> QuestionRecord:
        opts = tuple(o for o in self.options if o.question_id == q.id)
        return replace(q, options=opts)

    async def list_questions_with_options(self):
        return self._result("list_questions_with_options", [self._with_options(q) for q in self.questions if q.is_active])

    async def list_active_questions(self):
        return self._result("list_active_questions", [q for q in self.questions if q.is_active])

    async def list_options(self, question_ids: Iterable[str]):
        ids = set(question_ids)
        return self._result("list_options", [o for o in self.options if o.question_id in ids])

    async def list_advice_bands(self):
        return self._result("list_advice_bands", list(self.bands))

    async def list_advice_bands_without_tier(self):
        return self._result(
            "list_advice_bands_without_tier",
            [AdviceBandRecord(b.min_score, b.max_score, "", b.advice) for b in self.bands],
        )


BASE_TIME = datetime(2025, 3, 1, 12, 0, 0)


def _make_question(qid, text, *, question_type=QuestionType.select, category="medical_history",
                  display_order=0, created_by=None, age_minutes=0, is_active=True):
    return QuestionRecord(
        id=qid,
        text=text,
        question_type=question_type,
        category=category,
        display_order=display_order,
        is_active=is_active,
        created_by=created_by,
        created_at=BASE_TIME - timedelta(minutes=age_minutes),
    )


def _make_option(qid, value, score, display_order=None, label=None):
    return OptionRecord(question_id=qid, value=value, label=label or value.title(), score=score, display_order=display_order)


@pytest.fixture
def fake_store():
    return FakeConfigStore


@pytest.fixture
def make_question():
    return _make_question


@pytest.fixture
def make_option():
    return _make_option
