from django.urls import path

from . import views

app_name = "rewards"

urlpatterns = [
    path("scratch-cards", views.cards_collection, name="collection"),
    path("scratch-cards/<uuid:card_id>/scratch", views.scratch_card, name="scratch"),
]
