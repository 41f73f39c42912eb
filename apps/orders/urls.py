from django.urls import path

from . import views

app_name = "orders"

urlpatterns = [
    path("orders", views.orders_collection, name="collection"),
    path("orders/user", views.user_orders, name="user_orders"),
    path("orders/public", views.public_orders, name="public_orders"),
    path("orders/track/<str:order_number>", views.track_order, name="track"),
    path("orders/<uuid:order_id>", views.order_detail, name="detail"),
    path("orders/<uuid:order_id>/status", views.update_status, name="update_status"),
]
