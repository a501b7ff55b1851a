import json

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import ServiceError
from core.services.profile import get_user_profile


class Command(BaseCommand):
    help = "Fetch a Codeforces profile and print its aggregated statistics."

    def add_arguments(self, parser):
        parser.add_argument("handle", help="Codeforces handle.")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the full profile as JSON.",
        )

    def handle(self, *args, **options):
        try:
            profile = get_user_profile(options["handle"])
        except ServiceError as exc:
            raise CommandError(exc.message) from exc

        if options.get("json"):
            self.stdout.write(json.dumps(profile, indent=2, default=str))
            return

        stats = profile["submissionStats"]
        self.stdout.write(
            f"{profile['username']} ({profile['rank']}) rating {profile['rating']} "
            f"max {profile['maxRating']}"
        )
        self.stdout.write(
            f"Solved {profile['solvedCount']} problems, "
            f"{stats['accepted']}/{stats['total']} accepted submissions."
        )
        top_tags = sorted(profile["problemsByTag"].items(), key=lambda item: (-item[1], item[0]))[:5]
        if top_tags:
            self.stdout.write("Top tags: " + ", ".join(f"{tag} ({count})" for tag, count in top_tags))
        self.stdout.write(self.style.SUCCESS(f"Rated contests: {len(profile['ratingHistory'])}"))
