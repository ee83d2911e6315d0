import unittest

from cinecritic.db.models import UserRoleEnum
from cinecritic.services.rating_service import (
    RatingSnapshot,
    aggregate_scores,
    compute_ratings,
    compute_ratings_for_movies,
    scaled_mean,
)

from factories import add_movie, add_review, add_user, make_session_factory


class TestScaledMean(unittest.TestCase):
    def test_empty_is_zero(self) -> None:
        self.assertEqual(scaled_mean([]), 0)

    def test_exact_mean(self) -> None:
        self.assertEqual(scaled_mean([7, 8]), 75)
        self.assertEqual(scaled_mean([10]), 100)
        self.assertEqual(scaled_mean([1]), 10)

    def test_rounds_half_up(self) -> None:
        # mean 1.25 -> 12.5 -> 13
        self.assertEqual(scaled_mean([1, 1, 1, 2]), 13)
        # mean 7.666.. -> 76.66.. -> 77
        self.assertEqual(scaled_mean([7, 8, 8]), 77)


class TestAggregateScores(unittest.TestCase):
    def test_partitions_by_role(self) -> None:
        snapshot = aggregate_scores([
            (9, UserRoleEnum.CRITIC),
            (8, "CRITIC"),
            (4, UserRoleEnum.USER),
        ])
        self.assertEqual(
            snapshot,
            RatingSnapshot(
                critic_rating=85,
                audience_rating=40,
                critic_reviews_count=2,
                audience_reviews_count=1,
            ),
        )

    def test_critic_pair(self) -> None:
        snapshot = aggregate_scores([(8, UserRoleEnum.CRITIC), (10, UserRoleEnum.CRITIC)])
        self.assertEqual(snapshot.critic_rating, 90)
        self.assertEqual(snapshot.audience_rating, 0)

    def test_no_reviews(self) -> None:
        self.assertEqual(aggregate_scores([]).as_dict(), {
            "critic_rating": 0,
            "audience_rating": 0,
            "critic_reviews_count": 0,
            "audience_reviews_count": 0,
        })


class TestComputeRatings(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()

    def tearDown(self) -> None:
        self.db.close()

    def test_uses_current_author_role(self) -> None:
        movie = add_movie(self.db, "Heat", external_api_id=113277)
        alice = add_user(self.db, "alice")
        bob = add_user(self.db, "bob", role=UserRoleEnum.CRITIC)
        add_review(self.db, alice, movie, 6)
        add_review(self.db, bob, movie, 9)

        before = compute_ratings(self.db, movie.id)
        self.assertEqual((before.critic_rating, before.audience_rating), (90, 60))

        alice.role = UserRoleEnum.CRITIC
        self.db.commit()

        after = compute_ratings(self.db, movie.id)
        self.assertEqual(after.critic_reviews_count, 2)
        self.assertEqual(after.audience_reviews_count, 0)
        self.assertEqual(after.critic_rating, 75)
        self.assertEqual(after.audience_rating, 0)

    def test_batch_matches_single(self) -> None:
        heat = add_movie(self.db, "Heat", external_api_id=113277)
        ronin = add_movie(self.db, "Ronin", external_api_id=122690)
        empty = add_movie(self.db, "Collateral", external_api_id=369339)
        user = add_user(self.db, "carol")
        critic = add_user(self.db, "dave", role=UserRoleEnum.CRITIC)
        add_review(self.db, user, heat, 8)
        add_review(self.db, critic, heat, 7)
        add_review(self.db, user, ronin, 5)

        batch = compute_ratings_for_movies(self.db, [heat.id, ronin.id, empty.id])

        for movie in (heat, ronin, empty):
            self.assertEqual(batch[movie.id], compute_ratings(self.db, movie.id))
        self.assertEqual(batch[empty.id], RatingSnapshot())
