import pytest
import httpx
from httpx import ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from services.risk_assessment import models
from services.risk_assessment.app import app, get_risk_engine
from services.risk_assessment.cache import ConfigCache
from services.risk_assessment.db import get_db
from services.risk_assessment.defaults import FALLBACK_ADVICE_BY_TIER, default_question_id
from services.risk_assessment.engine import RiskAssessmentEngine
from services.risk_assessment.seed_questionnaire import seed_questionnaire
from services.risk_assessment.store import SqlConfigStore


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    models.Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def test_db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def risk_engine(session_factory):
    return RiskAssessmentEngine(SqlConfigStore(session_factory), ConfigCache())


@pytest.fixture(autouse=True)
def override_dependencies(test_db_session, risk_engine):
    def _get_db_override():
        yield test_db_session

    app.dependency_overrides[get_db] = _get_db_override
    app.dependency_overrides[get_risk_engine] = lambda: risk_engine
    yield
    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.anyio
async def test_score_seeded_questionnaire_with_legacy_keys(test_db_session):
    seed_questionnaire(test_db_session)

    async with _client() as client:
        r = await client.post(
            "/risk-assessment/score",
            json={"answers": {"familyGlaucoma": "yes", "race": "black", "iopBaseline": "22_and_above"}},
        )

    assert r.status_code == 200
    body = r.json()
    assert body["total_score"] == 6
    assert body["risk_tier"] == "High"
    assert {f["answer"] for f in body["contributing_factors"]} == {"yes", "black", "22_and_above"}


@pytest.mark.anyio
async def test_questions_endpoint_lists_active_catalog(test_db_session):
    seed_questionnaire(test_db_session)

    async with _client() as client:
        r = await client.get("/risk-assessment/questions")

    assert r.status_code == 200
    questions = r.json()
    ids = [q["id"] for q in questions]
    assert default_question_id("race") in ids
    race = next(q for q in questions if q["id"] == default_question_id("race"))
    assert {o["value"] for o in race["options"]} >= {"black", "hispanic"}
    first_name = next(q for q in questions if q["id"] == default_question_id("firstName"))
    assert first_name["question_type"] == "text"
    assert first_name["options"] == []


@pytest.mark.anyio
async def test_admin_question_and_option_change_score():
    async with _client() as client:
        r = await client.put(
            "/admin/questions",
            json={"text": "Family history of glaucoma", "question_type": "select", "category": "medical_history"},
        )
        assert r.status_code == 200
        qid = r.json()["id"]

        r = await client.put(f"/admin/questions/{qid}/options", json={"value": "yes", "score": 3})
        assert r.status_code == 200

        r = await client.post("/risk-assessment/score", json={"answers": {qid: "Yes"}})
        assert r.status_code == 200
        assert r.json()["total_score"] == 3

        # The option edit is visible on the next request.
        r = await client.put(f"/admin/questions/{qid}/options", json={"value": "yes", "score": 1})
        assert r.status_code == 200
        r = await client.post("/risk-assessment/score", json={"answers": {qid: "yes"}})
        assert r.json()["total_score"] == 1


@pytest.mark.anyio
async def test_retired_question_is_no_longer_scored():
    async with _client() as client:
        r = await client.put("/admin/questions", json={"text": "Race", "question_type": "select"})
        qid = r.json()["id"]

        r = await client.post("/risk-assessment/score", json={"answers": {qid: "black"}})
        assert r.json()["total_score"] == 2

        r = await client.post(f"/admin/questions/{qid}/retire")
        assert r.status_code == 200
        assert r.json()["is_active"] is False

        r = await client.post("/risk-assessment/score", json={"answers": {qid: "black"}})
        # Only the built-in questionnaire remains, and it does not know this id.
        assert r.json()["total_score"] == 0


@pytest.mark.anyio
async def test_advice_band_upsert_is_keyed_by_tier(test_db_session):
    async with _client() as client:
        payload = {"min_score": 0, "max_score": 4, "risk_tier": "low", "advice": "Yearly eye exam."}
        first = await client.put("/admin/advice-bands", json=payload)
        second = await client.put("/admin/advice-bands", json=payload)
        assert first.status_code == second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["risk_tier"] == "Low"

        r = await client.get("/risk-assessment/advice-bands")
        assert r.json() == [{"min_score": 0, "max_score": 4, "risk_tier": "Low", "advice": "Yearly eye exam."}]

    assert test_db_session.query(models.AdviceBand).count() == 1


@pytest.mark.anyio
async def test_advice_band_edit_invalidates_cached_bands():
    async with _client() as client:
        await client.put(
            "/admin/advice-bands",
            json={"min_score": 0, "max_score": 10, "risk_tier": "Low", "advice": "Old text."},
        )
        r = await client.post("/risk-assessment/score", json={"answers": {}})
        assert r.json()["advice"] == "Old text."

        await client.put(
            "/admin/advice-bands",
            json={"min_score": 0, "max_score": 10, "risk_tier": "Low", "advice": "New text."},
        )
        r = await client.post("/risk-assessment/score", json={"answers": {}})
        assert r.json()["advice"] == "New text."


@pytest.mark.anyio
async def test_admin_validation_errors():
    async with _client() as client:
        r = await client.put("/admin/questions", json={"text": "Age", "question_type": "slider"})
        assert r.status_code == 400

        r = await client.put("/admin/questions", json={"id": "q1", "text": "Age", "question_type": "select"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Invalid question id"

        r = await client.put(
            "/admin/questions",
            json={"text": "Which steroid?", "depends_on_question_id": "parent-1", "depends_on_value": "yes"},
        )
        assert r.status_code == 400

        r = await client.put(
            "/admin/advice-bands",
            json={"min_score": 0, "max_score": 2, "risk_tier": "critical", "advice": "x"},
        )
        assert r.status_code == 400

        r = await client.put(
            "/admin/advice-bands",
            json={"min_score": 5, "max_score": 2, "risk_tier": "High", "advice": "x"},
        )
        assert r.status_code == 400

        r = await client.post("/admin/questions/does-not-exist/retire")
        assert r.status_code == 404

        r = await client.put("/admin/questions/does-not-exist/options", json={"value": "yes"})
        assert r.status_code == 404


@pytest.mark.anyio
async def test_question_with_chosen_uuid_is_listed():
    qid = "6f1c2a9e-3b4d-4c5e-8f70-1a2b3c4d5e6f"

    async with _client() as client:
        r = await client.put("/admin/questions", json={"id": qid, "text": "Race", "question_type": "select"})
        assert r.status_code == 200
        assert r.json()["id"] == qid

        r = await client.get("/risk-assessment/questions")
        assert [q["id"] for q in r.json()] == [qid]


@pytest.mark.anyio
async def test_store_outage_still_returns_a_score():
    def _unreachable():
        raise ConnectionError("database is down")

    app.dependency_overrides[get_risk_engine] = lambda: RiskAssessmentEngine(SqlConfigStore(_unreachable))

    async with _client() as client:
        r = await client.post("/risk-assessment/score", json={"answers": {"familyGlaucoma": "yes"}})

    assert r.status_code == 200
    body = r.json()
    assert body["total_score"] == 2
    assert body["risk_tier"] == "Low"
    assert body["advice"] == FALLBACK_ADVICE_BY_TIER["Low"]
