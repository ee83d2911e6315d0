import unittest
from datetime import date

import httpx

from cinecritic.services.providers.base import ProviderConfig
from cinecritic.services.providers.tmdb import TmdbProvider


def _provider(handler, api_key: str = "tmdb-key") -> TmdbProvider:
    return TmdbProvider(
        ProviderConfig(base_url="https://tmdb.test/3", api_key=api_key),
        transport=httpx.MockTransport(handler),
        image_base_url="https://img.tmdb.test/w500",
    )


class TestTmdbProvider(unittest.IsolatedAsyncioTestCase):
    async def test_trending_maps_rows(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "page": 1,
                "results": [
                    {
                        "id": 27205,
                        "title": "Inception",
                        "overview": "Dreams.",
                        "release_date": "2010-07-15",
                        "poster_path": "/inception.jpg",
                        "genre_ids": [28, 878, 424242],
                    },
                    {"id": 603, "title": "The Matrix", "release_date": "", "genre_ids": []},
                ],
            })

        movies = await _provider(handler).trending()

        self.assertTrue(seen[0].url.path.endswith("/trending/movie/day"))
        self.assertEqual(seen[0].url.params["api_key"], "tmdb-key")
        self.assertEqual(len(movies), 2)

        inception = movies[0]
        self.assertEqual(inception.external_api_id, 27205)
        self.assertEqual(inception.poster_url, "https://img.tmdb.test/w500/inception.jpg")
        self.assertEqual(inception.release_date, date(2010, 7, 15))
        self.assertEqual(inception.genres, ["Action", "Science Fiction", "424242"])
        self.assertEqual(inception.actors, [])
        self.assertEqual(inception.source, "tmdb")

        matrix = movies[1]
        self.assertIsNone(matrix.release_date)
        self.assertIsNone(matrix.poster_url)

    async def test_list_skips_rows_without_id_or_title(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "results": [
                    {"title": "No id"},
                    {"id": 1, "title": ""},
                    {"id": "not-a-number", "title": "Broken"},
                    {"id": 2, "title": "Kept"},
                ],
            })

        movies = await _provider(handler).search("kept")

        self.assertEqual([m.title for m in movies], ["Kept"])

    async def test_detail_uses_genre_objects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertTrue(request.url.path.endswith("/movie/603"))
            return httpx.Response(200, json={
                "id": 603,
                "title": "The Matrix",
                "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
            })

        movie = await _provider(handler).find_by_id("603")

        self.assertEqual(movie.genres, ["Action", "Science Fiction"])

    async def test_find_by_id_404_is_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"status_message": "not found"})

        self.assertIsNone(await _provider(handler).find_by_id(99999999))

    async def test_find_by_id_rejects_non_numeric(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = _provider(handler)
        self.assertIsNone(await provider.find_by_id("tt0133093"))
        self.assertIsNone(await provider.find_by_id(0))

    async def test_transport_error_degrades_to_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        self.assertEqual(await _provider(handler).trending(), [])

    async def test_unconfigured_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        self.assertEqual(await _provider(handler, api_key="").trending(), [])

