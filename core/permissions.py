from rest_framework.permissions import SAFE_METHODS, BasePermission


def get_role(user):
    if not user or not user.is_authenticated:
        return None
    if user.is_superuser:
        return "ADMIN"
    profile = getattr(user, "profile", None)
    if profile is not None:
        return profile.role
    return "ADMIN" if user.is_staff else None


class IsAdmin(BasePermission):
    def has_permission(self, request, view):
        return get_role(request.user) == "ADMIN"


class HasRole(BasePermission):
    """
    Permite el acceso a los roles indicados (ADMIN siempre pasa).
    Uso: permission_classes = [HasRole.of("ECONOMIA")]
    """
    roles = ()

    @classmethod
    def of(cls, *roles):
        return type(f"HasRole_{'_'.join(roles)}", (cls,), {"roles": roles})

    def has_permission(self, request, view):
        role = get_role(request.user)
        return role == "ADMIN" or role in self.roles


class ReadOnlyOrRole(HasRole):
    """Lectura para cualquier usuario autenticado; escritura solo para los roles indicados."""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return super().has_permission(request, view)


class IsOwnerOrAdmin(BasePermission):
    """
    Permiso para permitir que solo el dueño de un objeto o un admin lo edite/elimine.
    El dueño se resuelve por el empadronado vinculado a la cuenta del usuario.
    """
    def has_object_permission(self, request, view, obj):
        if get_role(request.user) == "ADMIN":
            return True
        empadronado_id = empadronado_id_de(request.user)
        return empadronado_id is not None and getattr(obj, "empadronado_id", None) == empadronado_id


def empadronado_id_de(user):
    profile = getattr(user, "profile", None)
    return getattr(profile, "empadronado_id", None)


def es_personal(user, *roles):
    """ADMIN o alguno de los roles indicados."""
    role = get_role(user)
    return role == "ADMIN" or role in roles
