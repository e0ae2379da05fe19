# core/services/auditoria.py
import logging

from core.models import ActivityLog

logger = logging.getLogger(__name__)


def registrar_actividad(user, action, modulo="", objeto=None, details=None, **datos):
    """Deja rastro en ActivityLog de una operación hecha por `user` (None = sistema)."""
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None
    log = ActivityLog.objects.create(
        user=user,
        action=action,
        modulo=modulo,
        objeto_id=str(objeto.pk) if objeto is not None else "",
        details=details,
        datos=datos,
    )
    logger.info("%s [%s] %s por %s", action, modulo or "-", log.objeto_id or "-", getattr(user, "username", "sistema"))
    return log
