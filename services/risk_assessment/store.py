"""Configuration store read interface.

Every read returns a StoreResult instead of raising, so callers can inspect a
failure and move on to their next access path.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Protocol, TypeVar

import anyio
from sqlalchemy.orm import Session, selectinload

from services.risk_assessment import models
from services.risk_assessment.records import AdviceBandRecord, OptionRecord, QuestionRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(Exception):
    """A failed configuration read, carried as a value in StoreResult."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    data: T | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.data


class ConfigStore(Protocol):
    async def list_questions_with_options(self) -> StoreResult[list[QuestionRecord]]: ...

    async def list_active_questions(self) -> StoreResult[list[QuestionRecord]]: ...

    async def list_options(self, question_ids: Iterable[str]) -> StoreResult[list[OptionRecord]]: ...

    async def list_advice_bands(self) -> StoreResult[list[AdviceBandRecord]]: ...

    async def list_advice_bands_without_tier(self) -> StoreResult[list[AdviceBandRecord]]: ...


def option_record(row: models.QuestionOption) -> OptionRecord:
    return OptionRecord(
        question_id=row.question_id,
        value=row.value,
        label=row.label,
        score=row.score,
        display_order=row.display_order,
    )


def question_record(row: models.Question, options: tuple[OptionRecord, ...] = ()) -> QuestionRecord:
    return QuestionRecord(
        id=row.id,
        text=row.text,
        question_type=row.question_type,
        category=row.category or "",
        display_order=row.display_order or 0,
        is_active=row.is_active,
        tooltip=row.tooltip,
        depends_on_question_id=row.depends_on_question_id,
        depends_on_value=row.depends_on_value,
        created_by=row.created_by,
        created_at=row.created_at,
        options=options,
    )


class SqlConfigStore:
    """ConfigStore over a SQLAlchemy session factory.

    ORM calls block, so each read runs in a worker thread with its own session.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _with_session(self, fn: Callable[[Session], T]) -> T:
        db = self._session_factory()
        try:
            return fn(db)
        finally:
            db.close()

    async def _read(self, operation: str, fn: Callable[[Session], T]) -> StoreResult[T]:
        try:
            data = await anyio.to_thread.run_sync(self._with_session, fn)
        except Exception as e:
            logger.warning(f"Configuration read '{operation}' failed: {e}")
            return StoreResult(error=StoreError(operation, str(e)))
        return StoreResult(data=data)

    async def list_questions_with_options(self) -> StoreResult[list[QuestionRecord]]:
        def _query(db: Session) -> list[QuestionRecord]:
            rows = (
                db.query(models.Question)
                .options(selectinload(models.Question.options))
                .filter(models.Question.is_active.is_(True))
                .order_by(
                    models.Question.category,
                    models.Question.display_order,
                    models.Question.created_at.desc(),
                )
                .all()
            )
            return [question_record(q, tuple(option_record(o) for o in q.options)) for q in rows]

        return await self._read("list_questions_with_options", _query)

    async def list_active_questions(self) -> StoreResult[list[QuestionRecord]]:
        def _query(db: Session) -> list[QuestionRecord]:
            rows = db.query(models.Question).filter(models.Question.is_active.is_(True)).all()
            return [question_record(q) for q in rows]

        return await self._read("list_active_questions", _query)

    async def list_options(self, question_ids: Iterable[str]) -> StoreResult[list[OptionRecord]]:
        ids = sorted(set(question_ids))

        def _query(db: Session) -> list[OptionRecord]:
            if not ids:
                return []
            rows = (
                db.query(models.QuestionOption)
                .filter(models.QuestionOption.question_id.in_(ids))
                .order_by(models.QuestionOption.display_order)
                .all()
            )
            return [option_record(o) for o in rows]

        return await self._read("list_options", _query)

    async def list_advice_bands(self) -> StoreResult[list[AdviceBandRecord]]:
        def _query(db: Session) -> list[AdviceBandRecord]:
            rows = db.query(models.AdviceBand).order_by(models.AdviceBand.min_score).all()
            return [
                AdviceBandRecord(
                    min_score=b.min_score,
                    max_score=b.max_score,
                    risk_tier=b.risk_tier,
                    advice=b.advice,
                )
                for b in rows
            ]

        return await self._read("list_advice_bands", _query)

    async def list_advice_bands_without_tier(self) -> StoreResult[list[AdviceBandRecord]]:
        """Older schemas have no tier column; the caller labels these bands."""

        def _query(db: Session) -> list[AdviceBandRecord]:
            rows = (
                db.query(models.AdviceBand.min_score, models.AdviceBand.max_score, models.AdviceBand.advice)
                .order_by(models.AdviceBand.min_score)
                .all()
            )
            return [
                AdviceBandRecord(min_score=min_score, max_score=max_score, risk_tier="", advice=advice)
                for min_score, max_score, advice in rows
            ]

        return await self._read("list_advice_bands_without_tier", _query)
