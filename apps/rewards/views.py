from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_http_methods

from apps.accounts.decorators import login_required_json
from apps.common.http import json_view

from . import services


@require_http_methods(["GET", "POST"])
@json_view
@login_required_json
def cards_collection(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        card = services.create_card(request.user)
        return JsonResponse(card.to_dict(), status=201)
    return JsonResponse([c.to_dict() for c in services.list_cards(request.user)], safe=False)


@require_http_methods(["PUT", "POST"])
@json_view
@login_required_json
def scratch_card(request: HttpRequest, card_id) -> JsonResponse:
    prize = services.scratch(card_id, request.user)
    return JsonResponse({"prize": prize})
