from django.core.management.base import BaseCommand, CommandError

from core.exceptions import ServiceError
from core.services.teams import get_leaderboard


class Command(BaseCommand):
    help = "Print the leaderboard of a team, fetching member data from Codeforces."

    def add_arguments(self, parser):
        parser.add_argument("team_id", help="Team id.")

    def handle(self, *args, **options):
        try:
            board = get_leaderboard(options["team_id"])
        except ServiceError as exc:
            raise CommandError(exc.message) from exc

        self.stdout.write(f"{board['teamName']} ({board['memberCount']} members)")
        for entry in board["leaderboard"]:
            line = (
                f"{entry['position']:>3}. {entry['username']:<24} "
                f"{entry['rating']:>5} {entry['solvedCount']:>6}  {entry['rank']}"
            )
            if entry.get("error"):
                self.stdout.write(self.style.WARNING(f"{line}  ({entry['error']})"))
            else:
                self.stdout.write(line)
