from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from services.risk_assessment import models
from services.risk_assessment.advice import UNKNOWN, normalize_risk_tier
from services.risk_assessment.catalog import is_well_formed_id


def _parse_question_type(question_type: str) -> models.QuestionType:
    try:
        return models.QuestionType(question_type)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid question type")


def _get_question(db: Session, question_id: str) -> models.Question:
    question = db.get(models.Question, question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")
    return question


def upsert_question(
    *,
    db: Session,
    question_id: str | None,
    text: str,
    question_type: str,
    category: str = "",
    display_order: int = 0,
    is_active: bool = True,
    tooltip: str | None = None,
    depends_on_question_id: str | None = None,
    depends_on_value: str | None = None,
    created_by: str | None = None,
) -> models.Question:
    qt = _parse_question_type(question_type)
    # Rows without a UUID id are never loaded into the catalog.
    if question_id and not is_well_formed_id(question_id):
        raise HTTPException(status_code=400, detail="Invalid question id")
    if depends_on_question_id is not None:
        if not is_well_formed_id(depends_on_question_id):
            raise HTTPException(status_code=400, detail="Invalid parent question id")
        _get_question(db, depends_on_question_id)

    question = db.get(models.Question, question_id) if question_id else None
    if question is None:
        question = models.Question(created_by=created_by)
        if question_id:
            question.id = question_id
        db.add(question)
    elif created_by:
        question.created_by = created_by

    question.text = text.strip()
    question.question_type = qt
    question.category = category
    question.display_order = display_order
    question.is_active = is_active
    question.tooltip = tooltip
    question.depends_on_question_id = depends_on_question_id
    question.depends_on_value = depends_on_value
    question.updated_at = datetime.utcnow()
    db.flush()
    return question


def retire_question(*, db: Session, question_id: str) -> models.Question:
    question = _get_question(db, question_id)
    question.is_active = False
    question.updated_at = datetime.utcnow()
    return question


def upsert_option(
    *,
    db: Session,
    question_id: str,
    value: str,
    label: str | None = None,
    score: int | None = None,
    display_order: int | None = None,
) -> models.QuestionOption:
    """Create or update the option identified by (question, value)."""
    _get_question(db, question_id)
    value = value.strip()

    option = (
        db.query(models.QuestionOption)
        .filter(models.QuestionOption.question_id == question_id, models.QuestionOption.value == value)
        .first()
    )
    if option is None:
        option = models.QuestionOption(question_id=question_id, value=value)
        db.add(option)

    option.label = label or option.label or value
    option.score = score
    option.display_order = display_order
    db.flush()
    return option


def upsert_advice_band(*, db: Session, risk_tier: str, min_score: int, max_score: int, advice: str) -> models.AdviceBand:
    """Create or update the band for a risk tier. Repeating the call is a no-op."""
    tier = normalize_risk_tier(risk_tier)
    if tier == UNKNOWN:
        raise HTTPException(status_code=400, detail="Risk tier must be Low, Moderate or High")
    if min_score > max_score:
        raise HTTPException(status_code=400, detail="min_score must not exceed max_score")

    band = db.query(models.AdviceBand).filter(models.AdviceBand.risk_tier == tier).first()
    if band is None:
        band = models.AdviceBand(risk_tier=tier)
        db.add(band)

    band.min_score = min_score
    band.max_score = max_score
    band.advice = advice.strip()
    band.updated_at = datetime.utcnow()
    db.flush()
    return band
