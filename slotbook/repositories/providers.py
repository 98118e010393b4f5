"""Provider directory backed by PostgreSQL with a Redis read-through cache."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from slotbook.core.redis_client import CacheManager
from slotbook.database import run_statement
from slotbook.models.providers import provider_availability, providers
from slotbook.schemas.providers import AvailabilityRule, Provider


class ProviderRepository:
    """Read-only access to providers and their weekly availability."""

    # Cache TTL in seconds
    PROVIDER_CACHE_TTL = 900  # 15 minutes for individual providers
    PROVIDER_LIST_CACHE_TTL = 300  # 5 minutes for lists

    ACTIVE_LIST_CACHE_KEY = "provider:list:active"

    def __init__(self, db: AsyncSession, cache_manager: CacheManager | None = None):
        """Initialize repository with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager

    @staticmethod
    def _get_provider_cache_key(provider_id: UUID) -> str:
        """Generate cache key for provider."""
        return f"provider:{provider_id}"

    async def _load_rules(self, provider_ids: Sequence[UUID]) -> dict[UUID, list[AvailabilityRule]]:
        rules: dict[UUID, list[AvailabilityRule]] = {provider_id: [] for provider_id in provider_ids}
        if not provider_ids:
            return rules

        query = (
            select(provider_availability)
            .where(provider_availability.c.provider_id.in_(provider_ids))
            .order_by(provider_availability.c.day_of_week, provider_availability.c.start_time)
        )
        result = await run_statement(self.db, query)

        for row in result.mappings().all():
            rules[row["provider_id"]].append(AvailabilityRule.model_validate(dict(row)))
        return rules

    async def get_provider(self, provider_id: UUID) -> Provider | None:
        """
        Get a provider with its availability rules.

        Args:
            provider_id: Provider ID

        Returns:
            Provider, or None if it does not exist
        """
        # Try cache first
        if self.cache:
            cached = self.cache.get_json(self._get_provider_cache_key(provider_id))
            if cached:
                return Provider.model_validate(cached)

        query = select(providers).where(providers.c.id == provider_id)
        result = await run_statement(self.db, query)
        row = result.mappings().first()

        if not row:
            return None

        rules = await self._load_rules([provider_id])
        provider = Provider.model_validate({**dict(row), "availability": rules[provider_id]})

        if self.cache:
            self.cache.set_json(
                self._get_provider_cache_key(provider_id),
                provider.model_dump(mode="json"),
                ttl=self.PROVIDER_CACHE_TTL,
            )

        return provider

    async def list_active_providers(self) -> list[Provider]:
        """List active providers ordered by name, each with its availability."""
        if self.cache:
            cached = self.cache.get_json(self.ACTIVE_LIST_CACHE_KEY)
            if cached is not None:
                return [Provider.model_validate(item) for item in cached]

        query = select(providers).where(providers.c.is_active.is_(True)).order_by(providers.c.name_en)
        result = await run_statement(self.db, query)
        rows = [dict(row) for row in result.mappings().all()]

        rules = await self._load_rules([row["id"] for row in rows])
        items = [Provider.model_validate({**row, "availability": rules[row["id"]]}) for row in rows]

        if self.cache:
            self.cache.set_json(
                self.ACTIVE_LIST_CACHE_KEY,
                [item.model_dump(mode="json") for item in items],
                ttl=self.PROVIDER_LIST_CACHE_TTL,
            )

        return items
