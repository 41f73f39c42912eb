from django.urls import path

from . import views

app_name = "payments"

urlpatterns = [
    path("payments/<uuid:order_id>/process", views.process, name="process"),
    path("payments/<uuid:order_id>/status", views.status, name="status"),
]
