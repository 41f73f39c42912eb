from django.contrib import admin

from .models import ScratchCard


@admin.register(ScratchCard)
class ScratchCardAdmin(admin.ModelAdmin):
    list_display = ("user", "prize", "scratched", "scratched_at", "created_at")
    list_filter = ("scratched",)
    search_fields = ("user__email",)
    list_select_related = ("user",)
    readonly_fields = ("prize", "scratched", "scratched_at")
