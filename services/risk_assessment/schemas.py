from datetime import datetime

from pydantic import BaseModel, Field


class ContributingFactor(BaseModel):
    question: str
    answer: str
    score: int


class ScoreResult(BaseModel):
    total_score: int
    contributing_factors: list[ContributingFactor] = Field(default_factory=list)
    risk_tier: str
    advice: str


class ScoreRequest(BaseModel):
    # Keys are catalog question ids or legacy field names (e.g. "familyGlaucoma").
    answers: dict[str, str | int | float | bool | None] = Field(default_factory=dict)


class OptionResponse(BaseModel):
    value: str
    label: str
    score: int | None = None
    display_order: int | None = None


class QuestionResponse(BaseModel):
    id: str
    text: str
    question_type: str
    category: str
    display_order: int
    tooltip: str | None = None
    depends_on_question_id: str | None = None
    depends_on_value: str | None = None
    options: list[OptionResponse] = Field(default_factory=list)


class AdviceBandResponse(BaseModel):
    min_score: int
    max_score: int | None = None
    risk_tier: str
    advice: str


class QuestionUpsertRequest(BaseModel):
    id: str | None = None
    text: str = Field(min_length=1)
    question_type: str = "select"
    category: str = ""
    display_order: int = 0
    is_active: bool = True
    tooltip: str | None = None
    depends_on_question_id: str | None = None
    depends_on_value: str | None = None
    created_by: str | None = None


class QuestionAdminResponse(BaseModel):
    id: str
    text: str
    question_type: str
    category: str
    display_order: int
    is_active: bool
    created_by: str | None = None
    created_at: datetime


class OptionUpsertRequest(BaseModel):
    value: str = Field(min_length=1)
    label: str | None = None
    score: int | None = None
    display_order: int | None = None


class OptionAdminResponse(BaseModel):
    id: str
    question_id: str
    value: str
    label: str
    score: int | None = None
    display_order: int | None = None


class AdviceBandUpsertRequest(BaseModel):
    min_score: int
    max_score: int
    risk_tier: str
    advice: str = Field(min_length=1)


class AdviceBandAdminResponse(BaseModel):
    id: str
    min_score: int
    max_score: int
    risk_tier: str
    advice: str
    updated_at: datetime
