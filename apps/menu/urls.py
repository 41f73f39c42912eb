from django.urls import path

from . import views

app_name = "menu"

urlpatterns = [
    path("menu", views.menu_collection, name="collection"),
    path("menu/<uuid:item_id>", views.menu_detail, name="detail"),
]
