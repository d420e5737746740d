"""Map a total score to a risk tier and advice text.

Clinicians edit advice bands independently of the questions, so bands may
overlap, leave gaps, or carry free-form tier labels. A score always resolves
to some tier and advice: gaps fall back to the fixed thresholds below.
"""
import logging
from dataclasses import dataclass
from typing import Iterable

from services.risk_assessment.defaults import FALLBACK_ADVICE_BANDS, FALLBACK_ADVICE_BY_TIER
from services.risk_assessment.records import AdviceBandRecord
from services.risk_assessment.resilience import Attempt, Resolved, first_success
from services.risk_assessment.store import ConfigStore

logger = logging.getLogger(__name__)

LOW = "Low"
MODERATE = "Moderate"
HIGH = "High"
UNKNOWN = "Unknown"

AdviceBands = tuple[AdviceBandRecord, ...]


def normalize_risk_tier(label: str | None) -> str:
    text = (label or "").casefold()
    if "low" in text:
        return LOW
    if "mod" in text or "med" in text:
        return MODERATE
    if "high" in text:
        return HIGH
    return UNKNOWN


def threshold_tier(score: int) -> str:
    if score <= 2:
        return LOW
    if score <= 5:
        return MODERATE
    return HIGH


@dataclass(frozen=True)
class AdviceResolution:
    risk_tier: str
    advice: str
    matched_band: AdviceBandRecord | None = None


def resolve_advice(total_score: int, bands: Iterable[AdviceBandRecord]) -> AdviceResolution:
    """First band containing the score wins; bounds are inclusive."""
    computed = threshold_tier(total_score)
    band = next((b for b in bands if b.contains(total_score)), None)
    if band is None:
        logger.info(f"No advice band covers score {total_score}, using threshold tier {computed}")
        return AdviceResolution(risk_tier=computed, advice=FALLBACK_ADVICE_BY_TIER[computed])

    tier = normalize_risk_tier(band.risk_tier)
    if tier == UNKNOWN:
        logger.warning(f"Advice band label '{band.risk_tier}' is not a known tier, using {computed}")
        tier = computed
    advice = (band.advice or "").strip() or FALLBACK_ADVICE_BY_TIER[tier]
    return AdviceResolution(risk_tier=tier, advice=advice, matched_band=band)


class AdviceBandLoader:
    def __init__(self, store: ConfigStore):
        self.store = store

    def attempts(self) -> list[Attempt[AdviceBands]]:
        return [
            Attempt("advice_bands", self._load_bands),
            Attempt("advice_bands_without_tier", self._load_untiered_bands),
            Attempt("built_in_advice_bands", self._load_default, fallback=True),
        ]

    async def load(self) -> Resolved[AdviceBands]:
        return await first_success("advice bands", self.attempts())

    async def _load_bands(self) -> AdviceBands | None:
        bands = (await self.store.list_advice_bands()).unwrap()
        return tuple(bands) or None

    async def _load_untiered_bands(self) -> AdviceBands | None:
        bands = (await self.store.list_advice_bands_without_tier()).unwrap()
        labelled = tuple(
            AdviceBandRecord(
                min_score=b.min_score,
                max_score=b.max_score,
                risk_tier=threshold_tier(b.min_score),
                advice=b.advice,
            )
            for b in bands
        )
        return labelled or None

    async def _load_default(self) -> AdviceBands:
        return FALLBACK_ADVICE_BANDS
