from django.test import SimpleTestCase, override_settings

from core.exceptions import ExternalApiError, UserNotFoundError, ValidationError
from core.services.profile import (
    calculate_submission_stats,
    generate_heatmap,
    get_solved_problems,
    get_user_info,
    get_user_profile,
    process_solved_problems,
)
from core.tests.fakes import FakeClient, make_info, make_submission

DAY = 24 * 3600
# 2023-11-14 22:13:20 UTC
BASE_TS = 1700000000


class ProcessSolvedProblemsTests(SimpleTestCase):
    def test_repeated_accepts_count_once(self):
        submissions = [
            make_submission(1, "A", rating=800, tags=["math"], created=BASE_TS + 50),
            make_submission(1, "A", rating=800, tags=["math"], created=BASE_TS),
            make_submission(1, "A", rating=800, tags=["math"], created=BASE_TS + 10),
            make_submission(1, "B", verdict="WRONG_ANSWER", rating=1200, tags=["dp"]),
        ]
        result = process_solved_problems(submissions)

        self.assertEqual(len(result["solvedProblems"]), 1)
        self.assertEqual(result["problemsByTag"], {"math": 1})
        self.assertEqual(result["problemsByRating"], {800: 1})
        # First accepted in input order, not the earliest timestamp.
        self.assertEqual(result["solvedProblems"][0]["solvedAt"], BASE_TS + 50)

    def test_each_tag_of_a_problem_counts_once(self):
        submissions = [
            make_submission(10, "C", tags=["dp", "greedy", "math"], rating=1650),
            make_submission(11, "D", tags=["dp"], rating=1699),
            make_submission(12, "E", tags=["graphs"], rating=2100),
        ]
        result = process_solved_problems(submissions)

        self.assertEqual(result["problemsByTag"], {"dp": 2, "greedy": 1, "math": 1, "graphs": 1})
        self.assertEqual(result["problemsByRating"], {1600: 2, 2100: 1})

    def test_unrated_problems_are_marked_and_not_bucketed(self):
        result = process_solved_problems([make_submission(5, "A")])

        self.assertEqual(result["solvedProblems"][0]["rating"], "N/A")
        self.assertEqual(result["problemsByRating"], {})

    def test_identity_includes_contest_index_and_name(self):
        gym_a = make_submission(None, "A", name="Alpha")
        gym_b = make_submission(None, "A", name="Beta")
        result = process_solved_problems([gym_a, gym_b, gym_a])

        self.assertEqual(len(result["solvedProblems"]), 2)


class SubmissionStatsTests(SimpleTestCase):
    def test_counts_every_submission(self):
        submissions = [
            make_submission(1, "A"),
            make_submission(1, "A"),
            make_submission(1, "B", verdict="WRONG_ANSWER"),
            make_submission(1, "B", verdict="TIME_LIMIT_EXCEEDED"),
            make_submission(1, "C", verdict="RUNTIME_ERROR"),
            make_submission(1, "C", verdict="COMPILATION_ERROR"),
            make_submission(1, "C", verdict="MEMORY_LIMIT_EXCEEDED"),
            make_submission(1, "C", verdict="SOMETHING_NEW"),
        ]
        stats = calculate_submission_stats(submissions)

        self.assertEqual(stats, {
            "total": 8,
            "accepted": 2,
            "wrongAnswer": 1,
            "timeLimitExceeded": 1,
            "runtimeError": 1,
            "compilationError": 1,
            "other": 2,
        })

    def test_missing_verdict_is_other(self):
        submission = make_submission(1, "A")
        del submission["verdict"]
        self.assertEqual(calculate_submission_stats([submission])["other"], 1)


class HeatmapTests(SimpleTestCase):
    def test_counts_accepted_per_utc_day(self):
        submissions = [
            make_submission(1, "A", created=BASE_TS),
            make_submission(1, "A", created=BASE_TS + 60),
            make_submission(1, "A", created=BASE_TS + DAY),
            make_submission(1, "B", verdict="WRONG_ANSWER", created=BASE_TS),
        ]
        self.assertEqual(generate_heatmap(submissions), [
            {"date": "2023-11-14", "count": 2},
            {"date": "2023-11-15", "count": 1},
        ])


class UserProfileTests(SimpleTestCase):
    def setUp(self):
        self.fake = FakeClient()

    def test_profile_composes_all_sources(self):
        self.fake.add_user(
            "tourist",
            info=make_info("tourist", rating=3800, max_rating=4000, rank="legendary grandmaster"),
            submissions=[make_submission(1, "A", rating=800, tags=["math"])],
            rating=[{
                "contestId": 1,
                "contestName": "Codeforces Beta Round 1",
                "rank": 1,
                "ratingUpdateTimeSeconds": BASE_TS,
                "oldRating": 0,
                "newRating": 1600,
            }],
        )
        profile = get_user_profile("tourist", client=self.fake)

        self.assertEqual(profile["username"], "tourist")
        self.assertEqual(profile["maxRating"], 4000)
        self.assertEqual(profile["organization"], "N/A")
        self.assertEqual(profile["solvedCount"], 1)
        self.assertEqual(profile["ratingHistory"][0]["newRating"], 1600)
        self.assertEqual(profile["submissionStats"]["accepted"], 1)
        self.assertEqual(len(profile["heatmapData"]), 1)

    def test_rating_history_failure_degrades_to_empty(self):
        self.fake.add_user(
            "newbie",
            submissions=[make_submission(1, "A")],
            rating=ExternalApiError("rating service down"),
        )
        profile = get_user_profile("newbie", client=self.fake)

        self.assertEqual(profile["ratingHistory"], [])
        self.assertEqual(profile["solvedCount"], 1)

    def test_unknown_handle_propagates(self):
        with self.assertRaises(UserNotFoundError):
            get_user_profile("ghost", client=self.fake)

    def test_empty_handle_rejected_before_fetch(self):
        with self.assertRaises(ValidationError):
            get_user_profile("  ", client=self.fake)
        self.assertEqual(self.fake.calls, [])

    @override_settings(CF_SOLVED_PROBLEMS_LIMIT=100)
    def test_solved_list_is_capped_but_count_is_full(self):
        submissions = [make_submission(1000 + i, "A") for i in range(130)]
        self.fake.add_user("grinder", submissions=submissions)

        profile = get_user_profile("grinder", client=self.fake)

        self.assertEqual(profile["solvedCount"], 130)
        self.assertEqual(len(profile["solvedProblems"]), 100)

    def test_basic_info_has_no_submission_data(self):
        self.fake.add_user("petr", info=make_info("petr", rating=3100))
        info = get_user_info("petr", client=self.fake)

        self.assertEqual(info["rating"], 3100)
        self.assertNotIn("solvedProblems", info)
        self.assertEqual(self.fake.calls, [("user.info", "petr")])


class SolvedProblemsPageTests(SimpleTestCase):
    def setUp(self):
        self.fake = FakeClient()
        self.fake.add_user("grinder", submissions=[make_submission(2000 + i, "B") for i in range(30)])

    def test_slices_full_solved_list(self):
        page = get_solved_problems("grinder", limit="10", offset="25", client=self.fake)

        self.assertEqual(page["total"], 30)
        self.assertEqual(page["limit"], 10)
        self.assertEqual(page["offset"], 25)
        self.assertEqual([p["contestId"] for p in page["problems"]], [2025, 2026, 2027, 2028, 2029])

    def test_defaults(self):
        page = get_solved_problems("grinder", client=self.fake)
        self.assertEqual((page["limit"], page["offset"]), (50, 0))
        self.assertEqual(len(page["problems"]), 30)

    def test_rejects_bad_parameters_before_fetch(self):
        for limit, offset in (("abc", None), ("0", None), ("10", "-1"), ("5000", None)):
            with self.assertRaises(ValidationError):
                get_solved_problems("grinder", limit=limit, offset=offset, client=self.fake)
        self.assertEqual(self.fake.calls, [])
