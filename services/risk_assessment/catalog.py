"""Question catalog loading.

Turns the raw active-question rows of the configuration store into the
catalog the scorer iterates: well-formed identifiers only, one question per
normalized text, stable ordering, options attached to select questions.
"""
import logging
import re
from dataclasses import replace
from datetime import datetime
from typing import Iterable

from services.risk_assessment.defaults import default_catalog
from services.risk_assessment.models import QuestionType
from services.risk_assessment.records import OptionRecord, QuestionRecord
from services.risk_assessment.resilience import Attempt, Resolved, first_success
from services.risk_assessment.store import ConfigStore

logger = logging.getLogger(__name__)

Catalog = tuple[QuestionRecord, ...]

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

# Identity fields must always render as free text.
IDENTITY_FIELD_PATTERN = re.compile(r"\b(first|last)\s*name\b", re.IGNORECASE)


def is_well_formed_id(value) -> bool:
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def normalize_question_text(text: str) -> str:
    return " ".join((text or "").split()).casefold()


def _created(question: QuestionRecord) -> datetime:
    return question.created_at or datetime.min


def _should_replace(kept: QuestionRecord, candidate: QuestionRecord) -> bool:
    """Admin-authored beats unattributed; then newer beats older; else keep first."""
    if candidate.is_admin_authored != kept.is_admin_authored:
        return candidate.is_admin_authored
    return _created(candidate) > _created(kept)


def deduplicate(questions: Iterable[QuestionRecord]) -> list[QuestionRecord]:
    unique: dict[str, QuestionRecord] = {}
    for q in questions:
        key = normalize_question_text(q.text)
        kept = unique.get(key)
        if kept is None or _should_replace(kept, q):
            unique[key] = q
    return list(unique.values())


def coerce_identity_fields(question: QuestionRecord) -> QuestionRecord:
    if question.question_type != QuestionType.text and IDENTITY_FIELD_PATTERN.search(question.text or ""):
        return replace(question, question_type=QuestionType.text, options=())
    return question


def sort_catalog(questions: Iterable[QuestionRecord]) -> list[QuestionRecord]:
    # Two stable passes: newest first, then category and display order.
    newest_first = sorted(questions, key=_created, reverse=True)
    return sorted(newest_first, key=lambda q: (q.category or "", q.display_order or 0))


def select_catalog_questions(rows: Iterable[QuestionRecord]) -> list[QuestionRecord]:
    rows = list(rows)
    active = [q for q in rows if q.is_active and is_well_formed_id(q.id)]
    if len(active) != len(rows):
        logger.debug(f"Dropped {len(rows) - len(active)} inactive or malformed question rows")
    unique = deduplicate(active)
    result = sort_catalog(coerce_identity_fields(q) for q in unique)
    logger.info(f"Fetched {len(rows)} questions, returning {len(result)} unique active questions")
    return result


def _option_sort_key(option: OptionRecord):
    return (option.display_order is None, option.display_order or 0)


def attach_options(questions: Iterable[QuestionRecord], options: Iterable[OptionRecord]) -> Catalog:
    by_question: dict[str, list[OptionRecord]] = {}
    for option in options:
        by_question.setdefault(option.question_id, []).append(option)

    attached = []
    for q in questions:
        if q.question_type == QuestionType.select:
            q = replace(q, options=tuple(sorted(by_question.get(q.id, []), key=_option_sort_key)))
        elif q.options:
            q = replace(q, options=())
        attached.append(q)
    return tuple(attached)


def build_catalog(rows: Iterable[QuestionRecord]) -> Catalog:
    """Catalog from rows that already carry their options."""
    questions = select_catalog_questions(rows)
    return attach_options(questions, (o for q in questions for o in q.options))


class CatalogLoader:
    def __init__(self, store: ConfigStore):
        self.store = store

    def attempts(self) -> list[Attempt[Catalog]]:
        return [
            Attempt("questions_with_options", self._load_aggregated),
            Attempt("question_table_scan", self._load_by_table_scan),
            Attempt("built_in_questionnaire", self._load_default, fallback=True),
        ]

    async def load(self) -> Resolved[Catalog]:
        return await first_success("question catalog", self.attempts())

    async def _load_aggregated(self) -> Catalog | None:
        rows = (await self.store.list_questions_with_options()).unwrap()
        return build_catalog(rows) or None

    async def _load_by_table_scan(self) -> Catalog | None:
        rows = (await self.store.list_active_questions()).unwrap()
        questions = select_catalog_questions(rows)
        if not questions:
            return None
        options = (await self.store.list_options([q.id for q in questions])).unwrap()
        return attach_options(questions, options)

    async def _load_default(self) -> Catalog:
        return build_catalog(default_catalog())
