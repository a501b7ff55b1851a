import json
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.urls import reverse

from core.models import Team
from core.tests.fakes import FakeClient, make_info, make_submission


class ApiViewTests(TestCase):
    def setUp(self):
        self.fake = FakeClient()
        self.fake.add_user(
            "tourist",
            info=make_info("tourist", rating=3800, rank="legendary grandmaster"),
            submissions=[make_submission(1, "A", tags=["math"], rating=800)],
        )
        self.fake.add_user("petr", info=make_info("petr", rating=3100))
        patcher = patch("core.services.api_client._default_client", self.fake)
        patcher.start()
        self.addCleanup(patcher.stop)

    def _post(self, name, payload):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json")

    def test_health(self):
        response = self.client.get(reverse("health"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "OK")
        self.assertIn("timestamp", response.json())

    def test_user_profile(self):
        response = self.client.get(reverse("user_profile", args=["tourist"]))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["solvedCount"], 1)
        self.assertEqual(body["data"]["problemsByRating"], {"800": 1})

    def test_unknown_user_is_404_envelope(self):
        response = self.client.get(reverse("user_profile", args=["ghost"]))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "error": "User not found on Codeforces"})

    def test_user_info_and_solved(self):
        info = self.client.get(reverse("user_info", args=["petr"]))
        self.assertEqual(info.json()["data"]["rating"], 3100)

        solved = self.client.get(reverse("user_solved", args=["tourist"]), {"limit": 5, "offset": 0})
        self.assertEqual(solved.json()["data"]["total"], 1)

        bad = self.client.get(reverse("user_solved", args=["tourist"]), {"limit": "many"})
        self.assertEqual(bad.status_code, 400)
        self.assertFalse(bad.json()["success"])

    def test_compare_rejects_invalid_handle_without_network(self):
        response = self._post("compare", {"user1": "tourist", "user2": "xxx_invalid_handle!!"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["details"], [{"field": "user2", "value": "xxx_invalid_handle!!"}])
        self.assertEqual(self.fake.calls, [])

    def test_compare_missing_handle(self):
        response = self._post("compare", {"user1": "tourist"})
        self.assertEqual(response.status_code, 400)

    def test_compare_ok(self):
        response = self._post("compare", {"user1": "tourist", "user2": "petr"})

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["user1"]["username"], "tourist")
        self.assertEqual(len(data["comparison"]["user1Unique"]), 1)

    def test_malformed_json_is_400(self):
        response = self.client.post(reverse("compare"), data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Request body must be valid JSON")

    def test_create_team_with_invalid_member(self):
        response = self._post("team_collection", {
            "name": "ICPC",
            "members": ["tourist", "nonexistentuser12345"],
            "createdBy": "coach",
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["invalidMembers"], ["nonexistentuser12345"])
        self.assertFalse(Team.objects.exists())

    def test_team_lifecycle(self):
        created = self._post("team_collection", {
            "name": "ICPC",
            "members": ["tourist", "petr"],
            "createdBy": "coach",
        })
        self.assertEqual(created.status_code, 201)
        team_id = created.json()["data"]["id"]
        self.assertEqual(created.json()["data"]["createdBy"], "coach")

        listed = self.client.get(reverse("team_collection"))
        self.assertEqual([t["id"] for t in listed.json()["data"]], [team_id])

        detail = self.client.get(reverse("team_detail", args=[team_id]))
        self.assertEqual(detail.json()["data"]["members"], ["tourist", "petr"])

        board = self.client.get(reverse("team_leaderboard", args=[team_id]))
        rows = board.json()["data"]["leaderboard"]
        self.assertEqual([(r["position"], r["username"]) for r in rows], [(1, "tourist"), (2, "petr")])

        deleted = self.client.delete(reverse("team_detail", args=[team_id]))
        self.assertEqual(deleted.json(), {"success": True, "message": "Team deleted successfully"})

        missing = self.client.get(reverse("team_detail", args=[team_id]))
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"success": False, "error": "Team not found"})

    def test_delete_missing_team(self):
        response = self.client.delete(reverse("team_detail", args=["12345"]))
        self.assertEqual(response.status_code, 404)

    def test_method_not_allowed_is_json_envelope(self):
        response = self.client.get(reverse("compare"))

        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json(), {"success": False, "error": "Method not allowed"})
        self.assertEqual(response["Allow"], "POST")

    def test_unmatched_api_route_is_json_envelope(self):
        response = self.client.post("/api/teams/", data="{}", content_type="application/json")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "error": "Not found"})

    @override_settings(CORS_ALLOW_ALL_ORIGINS=True)
    def test_cors_preflight_allows_other_origins(self):
        response = self.client.options(
            reverse("compare"),
            HTTP_ORIGIN="https://frontend.example",
            HTTP_ACCESS_CONTROL_REQUEST_METHOD="POST",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Access-Control-Allow-Origin"], "*")

    @override_settings(CORS_ALLOW_ALL_ORIGINS=True)
    def test_cors_header_on_api_response(self):
        response = self.client.get(reverse("team_collection"), HTTP_ORIGIN="https://frontend.example")
        self.assertEqual(response["Access-Control-Allow-Origin"], "*")

    def test_unexpected_error_is_500_envelope(self):
        with patch("core.views.profile.get_user_profile", side_effect=RuntimeError("boom")):
            response = self.client.get(reverse("user_profile", args=["tourist"]))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"success": False, "error": "boom"})
