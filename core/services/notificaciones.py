# core/services/notificaciones.py
from django.contrib.auth import get_user_model

from core.models import Notification

User = get_user_model()


def notificar(usuarios, mensaje: str, link: str | None = None) -> list[Notification]:
    mensaje = mensaje[:255]
    return Notification.objects.bulk_create(
        [Notification(user=u, message=mensaje, link=link) for u in usuarios]
    )


def notificar_empadronado(empadronado_id, mensaje: str, link: str | None = None) -> Notification | None:
    """Avisa a la cuenta vinculada al empadronado; sin cuenta no hay a quién avisar."""
    usuario = User.objects.filter(is_active=True, profile__empadronado_id=empadronado_id).first()
    if usuario is None:
        return None
    return Notification.objects.create(user=usuario, message=mensaje[:255], link=link)


def notificar_rol(rol: str, mensaje: str, link: str | None = None) -> list[Notification]:
    return notificar(User.objects.filter(is_active=True, profile__role=rol), mensaje, link)
