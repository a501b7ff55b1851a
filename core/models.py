from django.db import models
from django.utils import timezone


class Team(models.Model):
    name = models.CharField(max_length=200)
    members = models.JSONField(default=list, help_text="Codeforces handles, in the order given")
    created_by = models.CharField(max_length=100)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_at'], name='core_team_created_4b8f1e_idx'),
        ]
        verbose_name = "Team"
        verbose_name_plural = "Teams"

    def __str__(self):
        return f"{self.name} ({len(self.members)} members)"

    def to_dict(self) -> dict:
        return {
            "id": self.pk,
            "name": self.name,
            "members": list(self.members),
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
        }
