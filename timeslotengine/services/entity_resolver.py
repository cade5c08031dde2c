"""
Concurrent resolution of the records a booking refers to.

Provider, customer and service are fetched in parallel and joined before
the caller continues; a single failing lookup fails the whole resolution.
Provider and customer profiles are read through an optional cache.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar
from uuid import UUID

from ..domain.exceptions import (
    CustomerNotFoundError,
    EntityNotFoundError,
    InfrastructureError,
    ProviderNotFoundError,
    ServiceNotFoundError,
    TimeslotEngineError,
)
from ..domain.models import Customer, Provider, ResolvedEntities, Service
from .protocols import BookingStore, ProfileCache

logger = logging.getLogger(__name__)

ProfileT = TypeVar("ProfileT", Provider, Customer)


def provider_cache_key(provider_id: int) -> str:
    return f"provider-{provider_id}"


def customer_cache_key(customer_id: int) -> str:
    return f"customer-{customer_id}"


class EntityResolver:
    """
    Fetches the provider, customer and service of a booking request.

    Args:
        store: Persistent store
        cache: Optional profile cache; ``None`` means reads go straight
            to the store
        timeout: Deadline in seconds for the whole three-way lookup
    """

    def __init__(
        self,
        store: BookingStore,
        cache: Optional[ProfileCache] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._timeout = timeout

    async def resolve(
        self,
        provider_id: int,
        customer_id: int,
        service_id: UUID,
    ) -> ResolvedEntities:
        """
        Run the three lookups concurrently and wait for all of them.

        Raises:
            ProviderNotFoundError / CustomerNotFoundError / ServiceNotFoundError
            InfrastructureError: on store failures or when the deadline passes
        """
        # return_exceptions keeps gather waiting for every lookup, so a
        # failure never leaves the other two running in the background.
        lookups = asyncio.gather(
            self.get_provider(provider_id),
            self.get_customer(customer_id),
            self.get_service(service_id),
            return_exceptions=True,
        )
        try:
            results = await asyncio.wait_for(lookups, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Entity resolution timed out after %ss", self._timeout)
            raise InfrastructureError(
                f"entity resolution timed out after {self._timeout}s"
            ) from exc

        # Report failures in a fixed order: provider, customer, service.
        for result in results:
            if isinstance(result, BaseException):
                raise result

        provider, customer, service = results
        return ResolvedEntities(provider=provider, customer=customer, service=service)

    async def get_provider(self, provider_id: int) -> Provider:
        return await self._get_profile(
            key=provider_cache_key(provider_id),
            model=Provider,
            fetch=lambda: self._store.get_provider(provider_id),
            not_found=ProviderNotFoundError(provider_id),
        )

    async def get_customer(self, customer_id: int) -> Customer:
        return await self._get_profile(
            key=customer_cache_key(customer_id),
            model=Customer,
            fetch=lambda: self._store.get_customer(customer_id),
            not_found=CustomerNotFoundError(customer_id),
        )

    async def get_service(self, service_id: UUID) -> Service:
        service = await self._fetch(lambda: self._store.get_service(service_id), "service")
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service

    async def invalidate_provider(self, provider_id: int) -> None:
        """Drop a cached provider profile after it was edited."""
        await self._cache_delete(provider_cache_key(provider_id))

    async def invalidate_customer(self, customer_id: int) -> None:
        """Drop a cached customer profile after it was edited."""
        await self._cache_delete(customer_cache_key(customer_id))

    async def _get_profile(
        self,
        *,
        key: str,
        model: Type[ProfileT],
        fetch: Callable[[], Awaitable[Optional[ProfileT]]],
        not_found: EntityNotFoundError,
    ) -> ProfileT:
        cached = await self._cache_get(key)
        if cached is not None:
            try:
                return model(**cached)
            except TypeError as exc:
                logger.warning("Discarding malformed cache entry %s: %s", key, exc)

        record = await self._fetch(fetch, not_found.entity)
        if record is None:
            raise not_found

        await self._cache_set(key, asdict(record))
        return record

    @staticmethod
    async def _fetch(fetch: Callable[[], Awaitable[Any]], entity: str) -> Any:
        try:
            return await fetch()
        except TimeslotEngineError:
            raise
        except Exception as exc:
            logger.error("Failed to look up %s: %s", entity, exc)
            raise InfrastructureError(f"error getting {entity}: {exc}") from exc

    async def _cache_get(self, key: str) -> Optional[dict]:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except Exception as exc:
            logger.warning("Cache read failed for %s, falling back to store: %s", key, exc)
            return None

    async def _cache_set(self, key: str, value: dict) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, value)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def _cache_delete(self, key: str) -> None:
        if self._cache is None:
            return
        # A failed invalidation would leave a stale profile behind, so the
        # writer has to hear about it.
        try:
            await self._cache.delete(key)
        except Exception as exc:
            logger.error("Cache invalidation failed for %s: %s", key, exc)
            raise InfrastructureError(f"invalidating cache entry {key}: {exc}") from exc
