import logging
from typing import Optional, Any, Dict

from django.db import DatabaseError, transaction

from clinic.models import AuditEvent

logger = logging.getLogger(__name__)


def log_action(*, user, action: str, object_type: Optional[str] = None, object_id=None,
               detail: Optional[Dict[str, Any]] = None) -> Optional[AuditEvent]:
    """Record an audit row.  A failed write is logged and swallowed."""
    logger.info('audit %s %s:%s by %s', action, object_type, object_id, getattr(user, 'id', None))
    try:
        # savepoint, so a failure here leaves an enclosing transaction usable
        with transaction.atomic():
            return AuditEvent.objects.create(
                user=user if getattr(user, 'id', None) else None,
                action=action,
                object_type=object_type,
                object_id=str(object_id) if object_id is not None else None,
                detail=detail or {},
            )
    except (DatabaseError, TypeError, ValueError) as e:
        logger.warning('audit write for %s failed: %s', action, e)
        return None
