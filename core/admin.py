from django.contrib import admin

from .models import Team

admin.site.site_header = "cfboard Administration"
admin.site.site_title = "cfboard Admin"
admin.site.index_title = "Teams"


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("name", "member_count", "created_by", "created_at")
    search_fields = ("name", "created_by")
    readonly_fields = ("members", "created_at")
    ordering = ("-created_at",)

    @admin.display(description="Members")
    def member_count(self, obj):
        return len(obj.members or [])

    def has_add_permission(self, request):
        # Members are validated against Codeforces only through the API.
        return False
