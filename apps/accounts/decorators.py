import functools

from apps.common.errors import Forbidden, Unauthorized


def login_required_json(view):
    @functools.wraps(view)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            raise Unauthorized()
        return view(request, *args, **kwargs)

    return _wrapped


def admin_required(view):
    """Authenticated *and* role == admin; must sit inside ``json_view``."""

    @functools.wraps(view)
    @login_required_json
    def _wrapped(request, *args, **kwargs):
        if not getattr(request.user, "is_admin", False):
            raise Forbidden("Admin access required")
        return view(request, *args, **kwargs)

    return _wrapped
