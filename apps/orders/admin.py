from django.contrib import admin

from .models import Counter, Order, OrderDeletion, OrderItem, OrderStatusChange


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("menu_item", "name_snapshot", "quantity", "unit_price_cents_snapshot", "line_total_cents")


class OrderStatusChangeInline(admin.TabularInline):
    model = OrderStatusChange
    extra = 0
    readonly_fields = ("status", "source", "created_at")
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "status", "payment_method", "total_cents", "created_at")
    list_filter = ("status", "payment_method")
    search_fields = ("order_number", "user__email", "user__name")
    date_hierarchy = "created_at"
    ordering = ("-created_at",)
    inlines = [OrderItemInline, OrderStatusChangeInline]
    list_select_related = ("user",)
    readonly_fields = ("order_number",)


@admin.register(OrderDeletion)
class OrderDeletionAdmin(admin.ModelAdmin):
    list_display = ("order_number", "status", "run_at", "attempts", "finished_at")
    list_filter = ("status",)
    search_fields = ("order_number",)
    ordering = ("-run_at",)


@admin.register(Counter)
class CounterAdmin(admin.ModelAdmin):
    list_display = ("name", "seq")
    readonly_fields = ("seq",)
