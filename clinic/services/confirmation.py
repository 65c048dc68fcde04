"""Typed confirmation for destructive actions.

The dashboards ask the user to type e.g. ``delete hospital`` before a
delete button is enabled; the API enforces the same phrase so a stray
request cannot remove a record.
"""
from rest_framework.exceptions import ValidationError


def confirmation_phrase(entity: str) -> str:
    return f"delete {entity}"


def confirmation_matches(text, phrase: str) -> bool:
    if not isinstance(text, str):
        return False
    return text.strip() == phrase


def require_confirmation(request, entity: str) -> None:
    """Raise ``ValidationError`` unless the request carries the phrase.

    The phrase is read from the ``confirm`` body field or query parameter.
    """
    phrase = confirmation_phrase(entity)
    text = None
    if hasattr(request, 'data') and hasattr(request.data, 'get'):
        text = request.data.get('confirm')
    if text is None:
        text = request.query_params.get('confirm')
    if not confirmation_matches(text, phrase):
        raise ValidationError({'confirm': f'Type "{phrase}" to confirm'})
