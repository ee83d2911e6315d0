import unittest
from uuid import uuid4

from cinecritic.core.errors import InvalidInputError
from cinecritic.db.models import Review, UserRoleEnum
from cinecritic.services.catalog_reconciler import MovieNotFoundError
from cinecritic.services.rating_service import compute_ratings
from cinecritic.services.review_service import (
    CRITIC_PROMOTION_THRESHOLD,
    DuplicateReviewError,
    NotReviewOwnerError,
    ReviewNotFoundError,
    create_review,
    delete_review,
    get_reviews_by_user,
    get_reviews_for_movie,
    update_review,
    validate_score,
)

from factories import add_movie, add_user, make_session_factory


class TestValidateScore(unittest.TestCase):
    def test_accepts_range(self) -> None:
        self.assertEqual(validate_score(1), 1)
        self.assertEqual(validate_score(10), 10)

    def test_rejects_out_of_range_and_non_ints(self) -> None:
        for bad in (0, 11, -3, None, True, 7.5, "7"):
            with self.subTest(score=bad):
                with self.assertRaises(InvalidInputError):
                    validate_score(bad)


class TestReviewService(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.user = add_user(self.db, "reviewer")
        self.movies = [
            add_movie(self.db, f"Movie {i}", external_api_id=1000 + i, minutes_after_base=i)
            for i in range(CRITIC_PROMOTION_THRESHOLD + 1)
        ]

    def tearDown(self) -> None:
        self.db.close()

    def test_promotes_on_threshold_review_only(self) -> None:
        results = [
            create_review(self.db, self.user.id, movie.id, 7)
            for movie in self.movies
        ]

        self.assertEqual([r["total_reviews"] for r in results], [1, 2, 3, 4, 5, 6])
        self.assertEqual(
            [r["promoted_to_critic"] for r in results],
            [False, False, False, False, True, False],
        )
        self.db.refresh(self.user)
        self.assertEqual(self.user.role, UserRoleEnum.CRITIC)
        self.assertEqual(results[-1]["review"]["user"]["role"], "CRITIC")

    def test_promotion_moves_earlier_reviews_to_critic_pool(self) -> None:
        first = self.movies[0]
        create_review(self.db, self.user.id, first.id, 8)
        self.assertEqual(compute_ratings(self.db, first.id).audience_reviews_count, 1)

        for movie in self.movies[1:CRITIC_PROMOTION_THRESHOLD]:
            create_review(self.db, self.user.id, movie.id, 5)

        snapshot = compute_ratings(self.db, first.id)
        self.assertEqual(snapshot.critic_reviews_count, 1)
        self.assertEqual(snapshot.critic_rating, 80)
        self.assertEqual(snapshot.audience_reviews_count, 0)

    def test_duplicate_review_is_rejected(self) -> None:
        movie = self.movies[0]
        create_review(self.db, self.user.id, movie.id, 6)
        with self.assertRaises(DuplicateReviewError):
            create_review(self.db, self.user.id, movie.id, 9)
        self.assertEqual(self.db.query(Review).count(), 1)

    def test_invalid_score_writes_nothing(self) -> None:
        with self.assertRaises(InvalidInputError):
            create_review(self.db, self.user.id, self.movies[0].id, 11)
        self.assertEqual(self.db.query(Review).count(), 0)

    def test_unknown_movie(self) -> None:
        with self.assertRaises(MovieNotFoundError):
            create_review(self.db, self.user.id, uuid4(), 5)
        with self.assertRaises(MovieNotFoundError):
            get_reviews_for_movie(self.db, uuid4())

    def test_update_and_delete_are_owner_only(self) -> None:
        other = add_user(self.db, "intruder")
        created = create_review(self.db, self.user.id, self.movies[0].id, 4, "meh")
        review_id = created["review"]["id"]

        with self.assertRaises(NotReviewOwnerError):
            update_review(self.db, other.id, review_id, {"score": 10})
        with self.assertRaises(NotReviewOwnerError):
            delete_review(self.db, other.id, review_id)

        updated = update_review(self.db, self.user.id, review_id, {"comment_text": None})
        self.assertEqual(updated["score"], 4)
        self.assertIsNone(updated["comment_text"])

        updated = update_review(self.db, self.user.id, review_id, {"score": 9})
        self.assertEqual(updated["score"], 9)

        self.assertTrue(delete_review(self.db, self.user.id, review_id))
        with self.assertRaises(ReviewNotFoundError):
            delete_review(self.db, self.user.id, review_id)

    def test_update_rejects_bad_score(self) -> None:
        created = create_review(self.db, self.user.id, self.movies[0].id, 4)
        with self.assertRaises(InvalidInputError):
            update_review(self.db, self.user.id, created["review"]["id"], {"score": 0})

    def test_listings(self) -> None:
        other = add_user(self.db, "second")
        movie = self.movies[0]
        create_review(self.db, self.user.id, movie.id, 7)
        create_review(self.db, other.id, movie.id, 3)
        create_review(self.db, self.user.id, self.movies[1].id, 8)

        by_movie = get_reviews_for_movie(self.db, movie.id)
        self.assertEqual({r["user"]["username"] for r in by_movie}, {"reviewer", "second"})

        mine = get_reviews_by_user(self.db, self.user.id)
        self.assertEqual({r["movie"]["title"] for r in mine}, {"Movie 0", "Movie 1"})
