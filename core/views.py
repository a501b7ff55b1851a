import json
import logging

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .exceptions import ValidationError
from .services import comparison, profile, teams

logger = logging.getLogger(__name__)


def _ok(data, status=200):
    return JsonResponse({"success": True, "data": data}, status=status)


def _json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@require_GET
def health(request):
    return JsonResponse({"status": "OK", "timestamp": timezone.now().isoformat()})


@require_GET
def user_profile(request, username):
    return _ok(profile.get_user_profile(username))


@require_GET
def user_info(request, username):
    return _ok(profile.get_user_info(username))


@require_GET
def user_solved(request, username):
    return _ok(profile.get_solved_problems(
        username,
        limit=request.GET.get("limit"),
        offset=request.GET.get("offset"),
    ))


@csrf_exempt
@require_POST
def compare(request):
    body = _json_body(request)
    return _ok(comparison.compare_profiles(body.get("user1"), body.get("user2")))


@csrf_exempt
@require_http_methods(["GET", "POST"])
def team_collection(request):
    if request.method == "POST":
        body = _json_body(request)
        team = teams.create_team(body.get("name"), body.get("members"), body.get("createdBy"))
        return _ok(team.to_dict(), status=201)

    return _ok([team.to_dict() for team in teams.list_teams()])


@csrf_exempt
@require_http_methods(["GET", "DELETE"])
def team_detail(request, team_id):
    if request.method == "DELETE":
        teams.delete_team(team_id)
        return JsonResponse({"success": True, "message": "Team deleted successfully"})

    return _ok(teams.get_team(team_id).to_dict())


@require_GET
def team_leaderboard(request, team_id):
    return _ok(teams.get_leaderboard(team_id))
