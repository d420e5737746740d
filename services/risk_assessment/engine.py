import logging
from typing import Any, Mapping

from services.risk_assessment.advice import UNKNOWN, AdviceBandLoader, AdviceBands, resolve_advice
from services.risk_assessment.cache import ADVICE_BANDS, CATALOG, ConfigCache
from services.risk_assessment.catalog import Catalog, CatalogLoader
from services.risk_assessment.config import ADVICE_CACHE_TTL_SECONDS, CATALOG_CACHE_TTL_SECONDS
from services.risk_assessment.defaults import UNKNOWN_ADVICE
from services.risk_assessment.normalizer import coerce_answers, key_answers
from services.risk_assessment.schemas import ScoreResult
from services.risk_assessment.scoring import score_answers
from services.risk_assessment.store import ConfigStore

logger = logging.getLogger(__name__)


class RiskAssessmentEngine:
    """Scores questionnaire answers against the live configuration.

    The cache is the only state held between requests; concurrent requests
    may see snapshots up to one TTL apart.
    """

    def __init__(
        self,
        store: ConfigStore,
        cache: ConfigCache | None = None,
        *,
        catalog_ttl: float = CATALOG_CACHE_TTL_SECONDS,
        advice_ttl: float = ADVICE_CACHE_TTL_SECONDS,
    ):
        self.store = store
        self.cache = cache or ConfigCache()
        self.catalog_ttl = catalog_ttl
        self.advice_ttl = advice_ttl
        self.catalog_loader = CatalogLoader(store)
        self.advice_loader = AdviceBandLoader(store)

    async def get_catalog(self) -> Catalog:
        return await self.cache.get_or_load(CATALOG, self.catalog_loader.load, self.catalog_ttl)

    async def get_advice_bands(self) -> AdviceBands:
        return await self.cache.get_or_load(ADVICE_BANDS, self.advice_loader.load, self.advice_ttl)

    async def calculate_risk_score(self, answers: Mapping[str, Any]) -> ScoreResult:
        try:
            catalog = await self.get_catalog()
            keyed = key_answers(answers, catalog)
            aggregate = score_answers(coerce_answers(keyed, catalog), catalog, submitted=keyed)
            resolution = resolve_advice(aggregate.total_score, await self.get_advice_bands())
        except Exception:
            logger.exception("Risk score calculation failed; returning Unknown tier")
            return ScoreResult(total_score=0, contributing_factors=[], risk_tier=UNKNOWN, advice=UNKNOWN_ADVICE)

        logger.info(
            f"Scored {len(answers)} answers: total={aggregate.total_score} "
            f"factors={len(aggregate.contributing_factors)} tier={resolution.risk_tier}"
        )
        return ScoreResult(
            total_score=aggregate.total_score,
            contributing_factors=list(aggregate.contributing_factors),
            risk_tier=resolution.risk_tier,
            advice=resolution.advice,
        )
