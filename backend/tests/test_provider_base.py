import asyncio
import time
import unittest

import httpx

from cinecritic.services.providers.base import ProviderConfig, RequestPacer
from cinecritic.services.providers.omdb import OmdbProvider
from cinecritic.services.providers.tmdb import TmdbProvider


def _timing_out(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("read timed out", request=request)


class TestRequestPacer(unittest.IsolatedAsyncioTestCase):
    async def test_spaces_consecutive_calls(self) -> None:
        pacer = RequestPacer(0.05)
        started = time.monotonic()
        for _ in range(3):
            await pacer.wait()
        self.assertGreaterEqual(time.monotonic() - started, 0.095)

    async def test_spaces_concurrent_calls(self) -> None:
        pacer = RequestPacer(0.05)
        started = time.monotonic()
        await asyncio.gather(*(pacer.wait() for _ in range(3)))
        self.assertGreaterEqual(time.monotonic() - started, 0.095)

    async def test_zero_interval_never_sleeps(self) -> None:
        pacer = RequestPacer(0)
        started = time.monotonic()
        for _ in range(50):
            await pacer.wait()
        self.assertLess(time.monotonic() - started, 0.05)

    def test_negative_interval_is_clamped(self) -> None:
        self.assertEqual(RequestPacer(-1).interval_seconds, 0.0)


class TestProviderTimeouts(unittest.IsolatedAsyncioTestCase):
    def _omdb(self) -> OmdbProvider:
        return OmdbProvider(
            ProviderConfig(base_url="https://omdb.test/", api_key="test-key", timeout_seconds=0.1),
            pacer=RequestPacer(0),
            transport=httpx.MockTransport(_timing_out),
        )

    def _tmdb(self) -> TmdbProvider:
        return TmdbProvider(
            ProviderConfig(base_url="https://tmdb.test/3", api_key="tmdb-key", timeout_seconds=0.1),
            transport=httpx.MockTransport(_timing_out),
        )

    async def test_omdb_timeout_degrades(self) -> None:
        provider = self._omdb()
        self.assertIsNone(await provider.find_by_id("tt0133093"))
        self.assertEqual(await provider.search("matrix"), [])
        self.assertEqual(await provider.trending(), [])

    async def test_tmdb_timeout_degrades(self) -> None:
        provider = self._tmdb()
        self.assertIsNone(await provider.find_by_id(603))
        self.assertEqual(await provider.search("matrix"), [])
        self.assertEqual(await provider.trending(), [])
