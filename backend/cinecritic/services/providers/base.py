"""
Shared plumbing for external movie providers.

Adapters get their base URL, key and timeout from a ProviderConfig and
their request spacing from a RequestPacer, both injected at construction.
Every public adapter method degrades to None / [] instead of raising; the
catalog has to keep serving local data when a provider is down or
unconfigured.
"""
import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from cinecritic.core.errors import ProviderNotConfiguredError, ProviderUnavailableError
from cinecritic.schemas.providers import NormalizedMovie

logger = logging.getLogger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ProviderConfig:
    base_url: str
    api_key: str = ""
    timeout_seconds: float = 10.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


class RequestPacer:
    """
    Fixed-interval scheduler: consecutive wait() calls return at least
    *interval_seconds* apart. Concurrent callers queue on a lock.
    """

    def __init__(self, interval_seconds: float = 0.0) -> None:
        self.interval_seconds = max(0.0, interval_seconds)
        self._lock = asyncio.Lock()
        self._last_slot: float | None = None

    async def wait(self) -> None:
        if self.interval_seconds <= 0:
            return
        async with self._lock:
            if self._last_slot is not None:
                delay = self._last_slot + self.interval_seconds - time.monotonic()
                if delay > 0:
                    await asyncio.sleep(delay)
            self._last_slot = time.monotonic()


class MovieProvider(Protocol):
    """What the reconciler needs from a provider adapter."""

    name: str

    async def find_by_id(self, native_id: str | int) -> NormalizedMovie | None: ...

    async def search(self, query: str) -> list[NormalizedMovie]: ...

    async def trending(self) -> list[NormalizedMovie]: ...


class BaseMovieProvider:
    """HTTP access, failure translation and degradation shared by adapters."""

    name = "provider"
    # spacing used when no pacer is injected
    default_interval_seconds = 0.0

    def __init__(
        self,
        config: ProviderConfig,
        pacer: RequestPacer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.pacer = pacer or RequestPacer(self.default_interval_seconds)
        self._transport = transport

    def _auth_params(self) -> dict[str, Any]:
        raise NotImplementedError

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any] | None:
        """
        Paced GET returning the decoded JSON body, or None on 404.

        Raises ProviderNotConfiguredError / ProviderUnavailableError.
        """
        if not self.config.is_configured:
            raise ProviderNotConfiguredError(f"{self.name} API key is not set")

        await self.pacer.wait()
        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params={**self._auth_params(), **params})
                if response.status_code == 404:
                    return None
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ProviderUnavailableError(
                f"{self.name} request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise ProviderUnavailableError(f"{self.name} request failed: {exc!r}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderUnavailableError(f"{self.name} returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise ProviderUnavailableError(f"{self.name} returned an unexpected payload")
        return payload

    def _parse(self, model: type[ModelT], payload: dict[str, Any]) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ProviderUnavailableError(
                f"{self.name} payload did not match {model.__name__}"
            ) from exc

    async def _absorb(self, operation: str, work: Awaitable[T], default: T) -> T:
        """Await *work*; on any provider failure log it and return *default*."""
        try:
            return await work
        except ProviderNotConfiguredError as exc:
            logger.warning(f"{self.name} {operation} skipped: {exc}")
        except ProviderUnavailableError as exc:
            logger.warning(f"{self.name} {operation} failed: {exc}")
        return default
