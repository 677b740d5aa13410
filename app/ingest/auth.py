"""
Identity and role checks for the JSON API.

Roles are Django auth groups. Superusers hold every role.
"""
from functools import wraps

from django.http import JsonResponse

ROLE_ADMIN = 'Administrador'
ROLE_COORDINATOR = 'Coordinador'
ROLE_MONITORISTA = 'Monitorista'
ROLE_TECHNICIAN = 'Técnico'

ALL_ROLES = (ROLE_ADMIN, ROLE_COORDINATOR, ROLE_MONITORISTA, ROLE_TECHNICIAN)
READ_ROLES = (ROLE_ADMIN, ROLE_COORDINATOR, ROLE_MONITORISTA)


def resolve_active_user(request):
    """The acting user, or None when unauthenticated or inactive."""
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated or not user.is_active:
        return None
    return user


def has_role(user, *roles):
    if user is None:
        return False
    if user.is_superuser:
        return True
    return user.groups.filter(name__in=roles).exists()


def role_required(*roles):
    """
    View decorator: 401 when the user cannot be resolved, 403 when none of
    `roles` is held. The resolved user is left on request.user.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            user = resolve_active_user(request)
            if user is None:
                return JsonResponse({"message": "Usuario no autenticado correctamente."}, status=401)
            if not has_role(user, *roles):
                return JsonResponse({"message": "No tiene permisos para realizar esta acción."}, status=403)
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator
