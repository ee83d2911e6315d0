import unittest
from datetime import datetime, timezone
from unittest.mock import patch

from cinecritic.core.errors import DuplicateKeyError
from cinecritic.db.models import Movie
from cinecritic.services.catalog_reconciler import (
    CatalogSources,
    MovieNotFoundError,
    ReconcileMode,
    fetch_external_trending,
    reconcile,
    refresh_catalog,
    resolve_external_movie,
)

from factories import FakeProvider, add_movie, make_session_factory, normalized


class TestReconcile(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()

    def tearDown(self) -> None:
        self.db.close()

    def _count(self) -> int:
        return self.db.query(Movie).count()

    def test_inserts_in_provider_order(self) -> None:
        rows = reconcile(self.db, [
            normalized(3, "Three"),
            normalized(1, "One", genres=["Drama"]),
            normalized(2, "Two"),
        ])
        self.assertEqual([r.external_api_id for r in rows], [3, 1, 2])
        self.assertEqual(rows[1].genres, ["Drama"])
        self.assertEqual(self._count(), 3)

    def test_rerun_refreshes_in_place(self) -> None:
        first = reconcile(self.db, [normalized(10, "Draft title"), normalized(11, "Other")])
        second = reconcile(self.db, [
            normalized(10, "Final title", synopsis="Now with a plot"),
            normalized(11, "Other"),
        ])

        self.assertEqual(self._count(), 2)
        self.assertEqual(first[0].id, second[0].id)
        refreshed = self.db.query(Movie).filter(Movie.external_api_id == 10).one()
        self.assertEqual(refreshed.title, "Final title")
        self.assertEqual(refreshed.synopsis, "Now with a plot")

    def test_identical_rerun_still_touches_updated_at(self) -> None:
        reconcile(self.db, [normalized(10, "Same")])
        row = self.db.query(Movie).filter(Movie.external_api_id == 10).one()
        row.updated_at = datetime(2000, 1, 1, tzinfo=timezone.utc)
        self.db.commit()

        reconcile(self.db, [normalized(10, "Same")])

        self.db.refresh(row)
        self.assertEqual(row.title, "Same")
        self.assertGreater(row.updated_at.year, 2000)

    def test_repeated_id_in_batch_yields_one_row(self) -> None:
        rows = reconcile(self.db, [normalized(5, "Five"), normalized(5, "Five again")])
        self.assertEqual(len(rows), 1)
        self.assertEqual(self._count(), 1)
        self.assertEqual(rows[0].title, "Five again")

    def test_missing_external_id_is_skipped_in_bulk(self) -> None:
        rows = reconcile(self.db, [normalized(None, "Nameless"), normalized(7, "Seven")])
        self.assertEqual([r.title for r in rows], ["Seven"])
        self.assertEqual(self._count(), 1)

    def test_missing_external_id_in_single_uses_title(self) -> None:
        local = add_movie(self.db, "Manual entry")
        rows = reconcile(self.db, [normalized(None, "Manual entry")], ReconcileMode.SINGLE)
        self.assertEqual(rows[0].id, local.id)

        with self.assertRaises(MovieNotFoundError):
            reconcile(self.db, [normalized(None, "Nowhere")], ReconcileMode.SINGLE)

    def test_conflict_recovers_through_title(self) -> None:
        local = add_movie(self.db, "Raced", external_api_id=None)
        with patch(
            "cinecritic.services.catalog_reconciler.upsert_movie",
            side_effect=DuplicateKeyError("race"),
        ):
            bulk = reconcile(self.db, [normalized(42, "Raced")], ReconcileMode.BULK)
            single = reconcile(self.db, [normalized(42, "Raced")], ReconcileMode.SINGLE)

        self.assertEqual(bulk[0].id, local.id)
        self.assertEqual(single[0].id, local.id)

    def test_conflict_without_match_depends_on_mode(self) -> None:
        with patch(
            "cinecritic.services.catalog_reconciler.upsert_movie",
            side_effect=DuplicateKeyError("race"),
        ):
            self.assertEqual(reconcile(self.db, [normalized(43, "Lost")], ReconcileMode.BULK), [])
            with self.assertRaises(DuplicateKeyError):
                reconcile(self.db, [normalized(43, "Lost")], ReconcileMode.SINGLE)


class TestSourceSelection(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()

    def tearDown(self) -> None:
        self.db.close()

    async def test_primary_wins_when_non_empty(self) -> None:
        primary = FakeProvider("primary", trending=[normalized(1, "From primary")])
        secondary = FakeProvider("secondary", trending=[normalized(2, "From secondary", source="tmdb")])

        movies = await fetch_external_trending(CatalogSources(primary, secondary))

        self.assertEqual([m.title for m in movies], ["From primary"])
        self.assertEqual(secondary.trending_calls, 0)

    async def test_falls_back_to_secondary(self) -> None:
        primary = FakeProvider("primary")
        secondary = FakeProvider("secondary", trending=[normalized(2, "From secondary", source="tmdb")])

        rows = await refresh_catalog(self.db, CatalogSources(primary, secondary))

        self.assertEqual([r.title for r in rows], ["From secondary"])
        self.assertEqual(primary.trending_calls, 1)
        self.assertEqual(secondary.trending_calls, 1)

    async def test_both_empty_leaves_catalog_untouched(self) -> None:
        rows = await refresh_catalog(
            self.db, CatalogSources(FakeProvider("primary"), FakeProvider("secondary"))
        )
        self.assertEqual(rows, [])
        self.assertEqual(self.db.query(Movie).count(), 0)

    async def test_resolve_prefixed_id_asks_primary_only(self) -> None:
        primary = FakeProvider("primary", by_id={"tt0111161": normalized(111161, "Shawshank")})
        secondary = FakeProvider("secondary")

        movie = await resolve_external_movie(self.db, CatalogSources(primary, secondary), "tt0111161")

        self.assertEqual(movie.external_api_id, 111161)
        self.assertEqual(primary.lookups, ["tt0111161"])
        self.assertEqual(secondary.lookups, [])

    async def test_resolve_numeric_id_pads_then_falls_back(self) -> None:
        primary = FakeProvider("primary")
        secondary = FakeProvider("secondary", by_id={603: normalized(603, "The Matrix", source="tmdb")})

        movie = await resolve_external_movie(self.db, CatalogSources(primary, secondary), "603")

        self.assertEqual(movie.title, "The Matrix")
        self.assertEqual(primary.lookups, ["tt0000603"])
        self.assertEqual(secondary.lookups, [603])

    async def test_resolve_unrecognized_identifier(self) -> None:
        primary = FakeProvider("primary")
        secondary = FakeProvider("secondary")
        sources = CatalogSources(primary, secondary)

        self.assertIsNone(await resolve_external_movie(self.db, sources, "not-an-id"))
        self.assertIsNone(await resolve_external_movie(self.db, sources, "42"))
        self.assertEqual(primary.lookups, ["tt0000042"])
        self.assertEqual(secondary.lookups, [42])
