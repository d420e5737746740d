"""Read-only shapes handed out by the configuration store.

These are snapshots, detached from any ORM session, so cached catalogs and
advice bands can be shared between concurrent scoring requests.
"""
from dataclasses import dataclass, field
from datetime import datetime

from services.risk_assessment.models import QuestionType


@dataclass(frozen=True)
class OptionRecord:
    question_id: str
    value: str
    label: str
    score: int | None = None
    display_order: int | None = None


@dataclass(frozen=True)
class QuestionRecord:
    id: str
    text: str
    question_type: QuestionType = QuestionType.select
    category: str = ""
    display_order: int = 0
    is_active: bool = True
    tooltip: str | None = None
    depends_on_question_id: str | None = None
    depends_on_value: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    options: tuple[OptionRecord, ...] = field(default_factory=tuple)

    @property
    def is_admin_authored(self) -> bool:
        return bool(self.created_by)


@dataclass(frozen=True)
class AdviceBandRecord:
    min_score: int
    max_score: int | None
    risk_tier: str
    advice: str

    def contains(self, score: int) -> bool:
        if score < self.min_score:
            return False
        return self.max_score is None or score <= self.max_score
