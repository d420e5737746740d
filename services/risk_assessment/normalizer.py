"""Map raw form answers onto catalog question ids.

Current clients key answers by catalog id and pass straight through. Older
clients send fixed field names ("familyGlaucoma", "iopBaseline", ...) which
are resolved by looking for known phrases in the catalog's question text.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping

from services.risk_assessment.models import QuestionType
from services.risk_assessment.records import QuestionRecord

logger = logging.getLogger(__name__)


def mentions(question_text: str, phrase: str) -> bool:
    """True when the phrase appears as whole words, allowing a plural ending.

    "ratio" matches "C:D ratio" but not "Duration"; "steroid" matches "steroids".
    """
    pattern = rf"\b{re.escape(phrase)}(?:s|es)?\b"
    return re.search(pattern, question_text or "", re.IGNORECASE) is not None


@dataclass(frozen=True)
class LegacyField:
    key: str
    includes: tuple[str, ...]
    excludes: tuple[str, ...] = ()

    def matches(self, question_text: str) -> bool:
        if any(mentions(question_text, f) for f in self.excludes):
            return False
        return all(mentions(question_text, f) for f in self.includes)


LEGACY_FIELDS = (
    LegacyField("firstName", ("first name",)),
    LegacyField("lastName", ("last name",)),
    LegacyField("age", ("age",), excludes=("steroid", "family")),
    LegacyField("race", ("race",)),
    LegacyField("familyGlaucoma", ("family",)),
    LegacyField("ocularSteroid", ("ophthalmic",), excludes=("which",)),
    LegacyField("steroidType", ("which", "ophthalmic")),
    LegacyField("intravitreal", ("intravitreal",), excludes=("which",)),
    LegacyField("intravitrealType", ("which", "intravitreal")),
    LegacyField("intravitealType", ("which", "intravitreal")),
    LegacyField("intravitralType", ("which", "intravitreal")),
    LegacyField("systemicSteroid", ("systemic",), excludes=("which",)),
    LegacyField("systemicSteroidType", ("which", "systemic")),
    LegacyField("iopBaseline", ("iop",)),
    LegacyField("verticalAsymmetry", ("asymmetry",)),
    LegacyField("verticalRatio", ("ratio",), excludes=("asymmetry",)),
)


def _legacy_lookup_key(key: str) -> str:
    # "family_glaucoma", "FamilyGlaucoma" and "familyGlaucoma" are the same field.
    return key.replace("_", "").replace("-", "").casefold()


LEGACY_FIELDS_BY_KEY = {_legacy_lookup_key(f.key): f for f in LEGACY_FIELDS}


def resolve_legacy_key(key: str, catalog: tuple[QuestionRecord, ...]) -> QuestionRecord | None:
    field = LEGACY_FIELDS_BY_KEY.get(_legacy_lookup_key(key))
    if field is None:
        return None
    return next((q for q in catalog if field.matches(q.text)), None)


def _parse_number(value: Any):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        number = float(text)
    except ValueError:
        return text
    return int(number) if number.is_integer() and "." not in text else number


def coerce_answer(question: QuestionRecord, value: Any):
    if value is None:
        return None
    if isinstance(value, bool):
        return "yes" if value else "no"
    if question.question_type == QuestionType.number:
        return _parse_number(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    if question.question_type == QuestionType.select:
        token = text.casefold()
        if token in ("true", "false"):
            return "yes" if token == "true" else "no"
    return text


def key_answers(raw_answers: Mapping[str, Any], catalog: tuple[QuestionRecord, ...]) -> dict[str, Any]:
    """Return the raw answer values keyed by catalog question id.

    Answers that match no catalog question are dropped. When a question is
    answered both by id and by a legacy name, the id-keyed answer wins.
    """
    by_id = {q.id: q for q in catalog}
    keyed: dict[str, Any] = {}
    direct: dict[str, Any] = {}

    for key, value in raw_answers.items():
        if key in by_id:
            direct[key] = value
            continue
        question = resolve_legacy_key(key, catalog)
        if question is None:
            logger.debug(f"Dropping answer for unknown question key '{key}'")
            continue
        keyed[question.id] = value

    keyed.update(direct)
    return keyed


def coerce_answers(keyed_answers: Mapping[str, Any], catalog: tuple[QuestionRecord, ...]) -> dict[str, Any]:
    by_id = {q.id: q for q in catalog}
    return {qid: coerce_answer(by_id[qid], value) for qid, value in keyed_answers.items() if qid in by_id}


def normalize_answers(raw_answers: Mapping[str, Any], catalog: tuple[QuestionRecord, ...]) -> dict[str, Any]:
    return coerce_answers(key_answers(raw_answers, catalog), catalog)
