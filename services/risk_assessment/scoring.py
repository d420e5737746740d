"""Per-answer score resolution and aggregation.

An answer is scored from the matching option's configured score. When no
option matches, the heuristic table below is consulted so questions migrated
before their option scores were filled in still count. The heuristic values
mirror the legacy paper scoring and should be confirmed with the clinical
owners before being changed.
"""
import re
from dataclasses import dataclass
from typing import Any, Mapping

from services.risk_assessment.normalizer import mentions
from services.risk_assessment.records import QuestionRecord
from services.risk_assessment.schemas import ContributingFactor

OPTION = "option"
HEURISTIC = "heuristic"
UNSCORED = "unscored"


def answer_token(answer: Any) -> str:
    """'22 and above', '22_and_above' and ' 22  And Above ' all compare equal."""
    return re.sub(r"[\s_]+", "_", str(answer).strip().casefold())


def _as_number(answer: Any) -> float | None:
    if isinstance(answer, bool):
        return None
    if isinstance(answer, (int, float)):
        return float(answer)
    try:
        return float(str(answer).strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class HeuristicRule:
    name: str
    question_fragments: tuple[str, ...]
    points: int
    answers: frozenset[str] = frozenset()
    at_least: float | None = None
    excludes: tuple[str, ...] = ()

    def matches_question(self, question_text: str) -> bool:
        if any(mentions(question_text, f) for f in self.excludes):
            return False
        return any(mentions(question_text, f) for f in self.question_fragments)

    def matches_answer(self, answer: Any) -> bool:
        if answer_token(answer) in self.answers:
            return True
        if self.at_least is not None:
            number = _as_number(answer)
            return number is not None and number >= self.at_least
        return False


HEURISTIC_RULES = (
    HeuristicRule("family_history", ("family",), 2, frozenset({"yes"})),
    HeuristicRule("ophthalmic_steroid", ("ophthalmic",), 2, frozenset({"yes"}), excludes=("which",)),
    HeuristicRule("intravitreal_steroid", ("intravitreal",), 2, frozenset({"yes"}), excludes=("which",)),
    HeuristicRule("systemic_steroid", ("systemic",), 2, frozenset({"yes"}), excludes=("which",)),
    HeuristicRule("race_black", ("race",), 2, frozenset({"black", "black_or_african_american"})),
    HeuristicRule("race_hispanic", ("race",), 1, frozenset({"hispanic", "hispanic_or_latino"})),
    HeuristicRule("iop_baseline", ("iop",), 2, frozenset({"22_and_above"}), at_least=22),
    HeuristicRule("vertical_asymmetry", ("asymmetry",), 2, frozenset({"0.2_and_above"}), at_least=0.2),
    HeuristicRule("vertical_ratio", ("ratio",), 2, frozenset({"0.6_and_above"}), at_least=0.6, excludes=("asymmetry",)),
)


@dataclass(frozen=True)
class ResolvedScore:
    points: int
    source: str
    rule: str | None = None


@dataclass(frozen=True)
class Aggregate:
    total_score: int
    contributing_factors: tuple[ContributingFactor, ...]


def is_answered(answer: Any) -> bool:
    if answer is None:
        return False
    return not (isinstance(answer, str) and not answer.strip())


def match_heuristic(question: QuestionRecord, answer: Any) -> HeuristicRule | None:
    for rule in HEURISTIC_RULES:
        if rule.matches_question(question.text) and rule.matches_answer(answer):
            return rule
    return None


def resolve_score(question: QuestionRecord, answer: Any) -> ResolvedScore:
    wanted = str(answer).strip().casefold()
    for option in question.options:
        if option.value.strip().casefold() == wanted:
            return ResolvedScore(points=option.score or 0, source=OPTION)

    rule = match_heuristic(question, answer)
    if rule is not None:
        return ResolvedScore(points=rule.points, source=HEURISTIC, rule=rule.name)
    return ResolvedScore(points=0, source=UNSCORED)


def score_answers(
    answers: Mapping[str, Any],
    catalog: tuple[QuestionRecord, ...],
    submitted: Mapping[str, Any] | None = None,
) -> Aggregate:
    """Sum resolved scores in catalog order.

    Iterating the catalog rather than the answers keeps the factor list in a
    fixed order for a given catalog snapshot. ``submitted`` holds the answers
    as the client sent them; factors report those rather than coerced values.
    """
    submitted = submitted or {}
    total = 0
    factors = []
    for question in catalog:
        answer = answers.get(question.id)
        if not is_answered(answer):
            continue
        resolved = resolve_score(question, answer)
        total += resolved.points
        if resolved.points > 0:
            factors.append(
                ContributingFactor(question=question.text, answer=str(submitted.get(question.id, answer)), score=resolved.points)
            )
    return Aggregate(total_score=total, contributing_factors=tuple(factors))
