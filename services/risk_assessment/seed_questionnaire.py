"""Seed the default glaucoma questionnaire and advice bands."""
import logging

from services.risk_assessment import models
from services.risk_assessment.admin import upsert_advice_band, upsert_option, upsert_question
from services.risk_assessment.db import SessionLocal, engine
from services.risk_assessment.defaults import FALLBACK_ADVICE_BANDS, default_catalog

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Open-ended top band is stored with a finite ceiling.
MAX_SEEDED_SCORE = 100


def seed_questionnaire(db=None) -> dict:
    if db is None:
        db = SessionLocal()
        should_close = True
    else:
        should_close = False

    try:
        if db.query(models.Question).first():
            logger.info("Questionnaire already seeded")
            return {"questions": 0, "options": 0, "advice_bands": 0}

        questions = options = 0
        for q in default_catalog():
            upsert_question(
                db=db,
                question_id=q.id,
                text=q.text,
                question_type=q.question_type.value,
                category=q.category,
                display_order=q.display_order,
                depends_on_question_id=q.depends_on_question_id,
                depends_on_value=q.depends_on_value,
            )
            questions += 1
            for o in q.options:
                upsert_option(
                    db=db,
                    question_id=q.id,
                    value=o.value,
                    label=o.label,
                    score=o.score,
                    display_order=o.display_order,
                )
                options += 1

        for band in FALLBACK_ADVICE_BANDS:
            upsert_advice_band(
                db=db,
                risk_tier=band.risk_tier,
                min_score=band.min_score,
                max_score=band.max_score if band.max_score is not None else MAX_SEEDED_SCORE,
                advice=band.advice,
            )

        db.commit()
        logger.info(f"Seeded {questions} questions, {options} options, {len(FALLBACK_ADVICE_BANDS)} advice bands")
        return {"questions": questions, "options": options, "advice_bands": len(FALLBACK_ADVICE_BANDS)}
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        if should_close:
            db.close()


if __name__ == "__main__":
    models.Base.metadata.create_all(bind=engine)
    seed_questionnaire()
