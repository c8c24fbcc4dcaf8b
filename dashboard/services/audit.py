import logging
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model

from dashboard.models import AuditEvent

User = get_user_model()
logger = logging.getLogger(__name__)


def log_action(*, user: Optional[User], action: str, object_type: Optional[str] = None,
               object_id: Optional[Any] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    return AuditEvent.objects.create(
        user=user if isinstance(user, User) and user.pk else None,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )


def try_log_action(**kwargs) -> Optional[AuditEvent]:
    """Audit without letting a failed write break the request."""
    try:
        return log_action(**kwargs)
    except Exception:
        logger.exception('audit write failed for %s', kwargs.get('action'))
        return None
