"""Read-only catalog endpoints: providers, metrics, rewards and tiers."""

from fastapi import APIRouter, Depends

from app.schemas.responses import (
    MetricDefinitionResponse,
    ProviderMetricsResponse,
    RewardResponse,
    SavingsTierResponse,
)
from app.services.catalog import MetricCatalog, Provider, get_catalog
from app.services.rewards import REWARDS, SAVINGS_TIERS

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/providers", response_model=list[str])
async def list_providers():
    """Providers a user can connect."""
    return [provider.value for provider in Provider]


@router.get("/providers/{provider}/metrics", response_model=ProviderMetricsResponse)
async def get_provider_metrics(provider: str, catalog: MetricCatalog = Depends(get_catalog)):
    """Metrics and conversion rates used when syncing this provider."""
    metrics = catalog.lookup(provider)
    return ProviderMetricsResponse(
        provider=provider,
        uses_fallback=not catalog.has_metric_set(provider),
        metrics=[MetricDefinitionResponse.model_validate(m) for m in metrics.values()],
    )


@router.get("/rewards", response_model=list[RewardResponse])
async def list_rewards():
    """Marketplace rewards, cheapest first."""
    return [RewardResponse.model_validate(r) for r in sorted(REWARDS, key=lambda r: r.cost)]


@router.get("/tiers", response_model=list[SavingsTierResponse])
async def list_tiers():
    """Savings tiers by minimum stake."""
    return [SavingsTierResponse.model_validate(t) for t in SAVINGS_TIERS]
