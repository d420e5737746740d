from datetime import datetime

from fastapi import Depends, FastAPI, Request
from sqlalchemy.orm import Session

from services.risk_assessment import models
from services.risk_assessment.admin import retire_question, upsert_advice_band, upsert_option, upsert_question
from services.risk_assessment.cache import ADVICE_BANDS, CATALOG
from services.risk_assessment.config import SERVICE_NAME, SERVICE_VERSION
from services.risk_assessment.db import SessionLocal, engine, get_db
from services.risk_assessment.engine import RiskAssessmentEngine
from services.risk_assessment.schemas import (
    AdviceBandAdminResponse,
    AdviceBandResponse,
    AdviceBandUpsertRequest,
    OptionAdminResponse,
    OptionResponse,
    OptionUpsertRequest,
    QuestionAdminResponse,
    QuestionResponse,
    QuestionUpsertRequest,
    ScoreRequest,
    ScoreResult,
)
from services.risk_assessment.store import SqlConfigStore

# Create tables (dev-only). In production use Alembic migrations.
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="Risk Assessment API")


def get_risk_engine(request: Request) -> RiskAssessmentEngine:
    # One engine (and so one cache) per application, built on first use.
    risk_engine = getattr(request.app.state, "risk_engine", None)
    if risk_engine is None:
        risk_engine = RiskAssessmentEngine(SqlConfigStore(SessionLocal))
        request.app.state.risk_engine = risk_engine
    return risk_engine


def _question_admin_response(q: models.Question) -> QuestionAdminResponse:
    return QuestionAdminResponse(
        id=q.id,
        text=q.text,
        question_type=q.question_type.value,
        category=q.category,
        display_order=q.display_order,
        is_active=q.is_active,
        created_by=q.created_by,
        created_at=q.created_at,
    )


@app.get("/health", tags=["Monitoring"])
def get_health():
    return {"status": "ok"}


@app.get("/version", tags=["Monitoring"])
def get_version():
    return {"service": SERVICE_NAME, "version": SERVICE_VERSION, "time": datetime.utcnow().isoformat()}


@app.post("/risk-assessment/score", response_model=ScoreResult, tags=["Risk Assessment"])
async def score_answers(payload: ScoreRequest, risk_engine: RiskAssessmentEngine = Depends(get_risk_engine)):
    return await risk_engine.calculate_risk_score(payload.answers)


@app.get("/risk-assessment/questions", response_model=list[QuestionResponse], tags=["Risk Assessment"])
async def list_questions(risk_engine: RiskAssessmentEngine = Depends(get_risk_engine)):
    catalog = await risk_engine.get_catalog()
    return [
        QuestionResponse(
            id=q.id,
            text=q.text,
            question_type=q.question_type.value,
            category=q.category,
            display_order=q.display_order,
            tooltip=q.tooltip,
            depends_on_question_id=q.depends_on_question_id,
            depends_on_value=q.depends_on_value,
            options=[
                OptionResponse(value=o.value, label=o.label, score=o.score, display_order=o.display_order)
                for o in q.options
            ],
        )
        for q in catalog
    ]


@app.get("/risk-assessment/advice-bands", response_model=list[AdviceBandResponse], tags=["Risk Assessment"])
async def list_advice_bands(risk_engine: RiskAssessmentEngine = Depends(get_risk_engine)):
    bands = await risk_engine.get_advice_bands()
    return [
        AdviceBandResponse(min_score=b.min_score, max_score=b.max_score, risk_tier=b.risk_tier, advice=b.advice)
        for b in bands
    ]


@app.put("/admin/questions", response_model=QuestionAdminResponse, tags=["Admin"])
def put_question(
    payload: QuestionUpsertRequest,
    db: Session = Depends(get_db),
    risk_engine: RiskAssessmentEngine = Depends(get_risk_engine),
):
    question = upsert_question(
        db=db,
        question_id=payload.id,
        text=payload.text,
        question_type=payload.question_type,
        category=payload.category,
        display_order=payload.display_order,
        is_active=payload.is_active,
        tooltip=payload.tooltip,
        depends_on_question_id=payload.depends_on_question_id,
        depends_on_value=payload.depends_on_value,
        created_by=payload.created_by,
    )
    db.commit()
    db.refresh(question)
    risk_engine.cache.invalidate(CATALOG)
    return _question_admin_response(question)


@app.post("/admin/questions/{question_id}/retire", response_model=QuestionAdminResponse, tags=["Admin"])
def post_retire_question(
    question_id: str,
    db: Session = Depends(get_db),
    risk_engine: RiskAssessmentEngine = Depends(get_risk_engine),
):
    question = retire_question(db=db, question_id=question_id)
    db.commit()
    db.refresh(question)
    risk_engine.cache.invalidate(CATALOG)
    return _question_admin_response(question)


@app.put("/admin/questions/{question_id}/options", response_model=OptionAdminResponse, tags=["Admin"])
def put_option(
    question_id: str,
    payload: OptionUpsertRequest,
    db: Session = Depends(get_db),
    risk_engine: RiskAssessmentEngine = Depends(get_risk_engine),
):
    option = upsert_option(
        db=db,
        question_id=question_id,
        value=payload.value,
        label=payload.label,
        score=payload.score,
        display_order=payload.display_order,
    )
    db.commit()
    db.refresh(option)
    risk_engine.cache.invalidate(CATALOG)
    return OptionAdminResponse(
        id=option.id,
        question_id=option.question_id,
        value=option.value,
        label=option.label,
        score=option.score,
        display_order=option.display_order,
    )


@app.put("/admin/advice-bands", response_model=AdviceBandAdminResponse, tags=["Admin"])
def put_advice_band(
    payload: AdviceBandUpsertRequest,
    db: Session = Depends(get_db),
    risk_engine: RiskAssessmentEngine = Depends(get_risk_engine),
):
    band = upsert_advice_band(
        db=db,
        risk_tier=payload.risk_tier,
        min_score=payload.min_score,
        max_score=payload.max_score,
        advice=payload.advice,
    )
    db.commit()
    db.refresh(band)
    risk_engine.cache.invalidate(ADVICE_BANDS)
    return AdviceBandAdminResponse(
        id=band.id,
        min_score=band.min_score,
        max_score=band.max_score,
        risk_tier=band.risk_tier,
        advice=band.advice,
        updated_at=band.updated_at,
    )
