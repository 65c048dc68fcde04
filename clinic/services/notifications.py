"""
Notification rows plus a best effort realtime push.

Each user's websocket joins the group ``user_<id>``; pushing is skipped
when no channel layer is configured.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from rest_framework.exceptions import NotFound

from clinic.models import Notification

User = get_user_model()
logger = logging.getLogger(__name__)


def user_group(user_id) -> str:
    return f'user_{user_id}'


def format_notification(n: Notification) -> dict:
    return {
        '_id': n.id,
        'title': n.title,
        'message': n.message,
        'type': n.kind,
        'read': n.read,
        'createdAt': n.created_at.isoformat() if n.created_at else None,
    }


def _push(notification: Notification) -> None:
    layer = get_channel_layer()
    if layer is None:
        return
    try:
        async_to_sync(layer.group_send)(
            user_group(notification.recipient_id),
            {'type': 'notify', 'payload': format_notification(notification)},
        )
    except Exception as e:
        # the row is saved; the client picks it up on its next fetch
        logger.warning('realtime push of notification %s failed: %s', notification.id, e)


def notify(recipients, *, title: str, message: str = '', kind: str = 'info') -> list[Notification]:
    created = []
    seen = set()
    for user in recipients:
        if user is None or user.id in seen:
            continue
        seen.add(user.id)
        n = Notification.objects.create(recipient=user, title=title, message=message, kind=kind)
        created.append(n)
        _push(n)
    logger.debug('notified %d users: %s', len(created), title)
    return created


def hospital_staff_users(hospital_id):
    if not hospital_id:
        return User.objects.none()
    return User.objects.filter(role=User.ROLE_STAFF, staff_profile__hospital_id=hospital_id, status='active')


def unread_first(user):
    return Notification.objects.filter(recipient=user).order_by('read', '-created_at', '-id')


def mark_read(user, notification_id) -> Notification:
    n = Notification.objects.filter(id=notification_id, recipient=user).first()
    if not n:
        raise NotFound('Notification not found')
    if not n.read:
        n.read = True
        n.save(update_fields=['read'])
    return n
