import logging
from typing import Any

from django.db import transaction

from core.exceptions import CodeforcesError, NotFoundError, ValidationError
from core.models import Team
from core.services.api_client import CodeforcesClient, get_default_client

logger = logging.getLogger(__name__)


def _placeholder_entry(handle: str) -> dict[str, Any]:
    return {
        "username": handle,
        "rating": 0,
        "maxRating": 0,
        "rank": "Unknown",
        "maxRank": "Unknown",
        "country": "Unknown",
        "organization": "Unknown",
        "solvedCount": 0,
        "avatar": "",
        "contribution": 0,
        "error": "Failed to fetch data",
    }


def _clean_members(members) -> list[str]:
    if not isinstance(members, list) or not members:
        raise ValidationError("Team name and members array are required")
    cleaned = []
    for member in members:
        if not isinstance(member, str) or not member.strip():
            raise ValidationError(
                "Members must be non-empty strings",
                details=[{"field": "members", "value": member}],
            )
        cleaned.append(member.strip())
    return cleaned


def find_invalid_members(members: list[str], client: CodeforcesClient | None = None) -> list[str]:
    """Check every handle upstream, one after another; never stops at the first failure."""
    client = client or get_default_client()
    invalid = []
    for handle in members:
        try:
            client.get_user_info(handle)
        except CodeforcesError as exc:
            logger.info("Team member %s rejected: %s", handle, exc.message)
            invalid.append(handle)
        except Exception:
            logger.exception("Team member %s could not be checked.", handle)
            invalid.append(handle)
    return invalid


def create_team(name, members, created_by, client: CodeforcesClient | None = None) -> Team:
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("Team name and members array are required")
    members = _clean_members(members)
    created_by = created_by.strip() if isinstance(created_by, str) else ""
    if not created_by:
        raise ValidationError("createdBy field is required")

    invalid = find_invalid_members(members, client=client)
    if invalid:
        raise ValidationError("Some usernames are invalid", invalidMembers=invalid)

    with transaction.atomic():
        team = Team.objects.create(name=name, members=members, created_by=created_by)
    logger.info("Created team %s (%s) with %d members.", team.pk, team.name, len(members))
    return team


def _parse_team_id(team_id) -> int:
    try:
        return int(team_id)
    except (TypeError, ValueError):
        raise NotFoundError("Team not found")


def get_team(team_id) -> Team:
    try:
        return Team.objects.get(pk=_parse_team_id(team_id))
    except Team.DoesNotExist:
        raise NotFoundError("Team not found")


def list_teams() -> list[Team]:
    return list(Team.objects.order_by("-created_at", "-id"))


def delete_team(team_id) -> None:
    deleted, _ = Team.objects.filter(pk=_parse_team_id(team_id)).delete()
    if not deleted:
        raise NotFoundError("Team not found")
    logger.info("Deleted team %s.", team_id)


def rank_entries(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    ranked = sorted(entries, key=lambda e: (-(e.get("rating") or 0), -(e.get("solvedCount") or 0)))
    for position, entry in enumerate(ranked, start=1):
        entry["position"] = position
    return ranked


def build_leaderboard(team: Team, client: CodeforcesClient | None = None) -> dict[str, Any]:
    client = client or get_default_client()
    entries = []
    for handle in team.members:
        try:
            entries.append(dict(client.get_user_summary(handle)))
        except CodeforcesError as exc:
            logger.warning("Leaderboard %s: failed to fetch %s: %s", team.pk, handle, exc.message)
            entries.append(_placeholder_entry(handle))
        except Exception:
            logger.exception("Leaderboard %s: unexpected error fetching %s.", team.pk, handle)
            entries.append(_placeholder_entry(handle))

    return {
        "teamId": team.pk,
        "teamName": team.name,
        "memberCount": len(team.members),
        "leaderboard": rank_entries(entries),
    }


def get_leaderboard(team_id, client: CodeforcesClient | None = None) -> dict[str, Any]:
    return build_leaderboard(get_team(team_id), client=client)
