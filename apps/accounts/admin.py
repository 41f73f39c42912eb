from django.contrib import admin
from django.contrib.auth import get_user_model
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from django.utils.translation import gettext_lazy as _


User = get_user_model()


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("email", "name", "role", "discount_cents", "is_staff", "date_joined")
    list_filter = ("role", "is_staff", "is_active")
    search_fields = ("email", "name", "username")
    ordering = ("email",)

    fieldsets = DjangoUserAdmin.fieldsets + (
        (_("Ordering"), {"fields": ("name", "role", "discount_cents")}),
    )

    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        (_("Ordering"), {"classes": ("wide",), "fields": ("email", "name", "role")}),
    )
