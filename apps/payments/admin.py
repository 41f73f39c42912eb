from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("order_number", "amount_cents", "method", "status", "processed_at", "created_at")
    list_filter = ("status", "method")
    search_fields = ("order_number",)
