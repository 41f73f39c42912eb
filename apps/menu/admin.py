from django.contrib import admin

from .models import MenuItem


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "price_cents", "quantity", "available", "created_at")
    list_filter = ("available", "category")
    search_fields = ("name", "description", "category")
    ordering = ("category", "name")
