import logging
import re
from typing import Optional

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from rest_framework.exceptions import ValidationError as DRFValidation
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.models import DoctorProfile, PatientProfile, StaffProfile
from clinic.services.roles import home_route

User = get_user_model()
logger = logging.getLogger(__name__)


def format_user(user) -> dict:
    return {
        '_id': user.id,
        'name': user.display_name,
        'email': user.email,
        'gender': user.gender,
        'role': user.role,
        'isAdmin': user.is_admin,
        'status': user.status,
        'hospital': user.hospital_id,
        'createdAt': user.date_joined.isoformat() if user.date_joined else None,
    }


def ensure_email_available(email: str, *, exclude_id: Optional[int] = None) -> None:
    qs = User.objects.filter(email__iexact=email)
    if exclude_id:
        qs = qs.exclude(id=exclude_id)
    if qs.exists():
        raise DRFValidation({'email': 'Email is already registered'})


def _username_for(email: str) -> str:
    base = re.sub(r'[^\w.@+-]', '', email.split('@')[0])[:120] or 'user'
    username, n = base, 1
    while User.objects.filter(username=username).exists():
        n += 1
        username = f"{base}{n}"
    return username


def create_account(*, email: str, password: str, name: str, role: str,
                   gender: str = '', hospital=None, status: str = 'active'):
    """Create a user after checking email uniqueness and password strength."""
    ensure_email_available(email)
    try:
        validate_password(password)
    except ValidationError as e:
        raise DRFValidation({'password': e.messages})
    user = User.objects.create_user(
        username=_username_for(email),
        email=email.lower(),
        password=password,
        name=name,
        role=role,
        gender=gender or '',
        hospital=hospital,
        status=status,
    )
    logger.info('created %s account %s', role, user.id)
    return user


def authenticate_identifier(request, identifier: str, password: str):
    """Resolve an email (or username) and check the password.

    Returns ``None`` for unknown accounts, wrong passwords and inactive
    accounts alike so the caller cannot tell them apart.
    """
    match = User.objects.filter(email__iexact=identifier).only('username').first()
    username = match.username if match else identifier
    user = authenticate(request, username=username, password=password)
    if user is None or user.status != 'active':
        return None
    return user


def token_payload(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {
        **format_user(user),
        'ok': True,
        'token': str(refresh.access_token),
        'refresh': str(refresh),
        'redirect': home_route(user.role),
    }


# role -> (profile model, relations that block removing it)
ROLE_PROFILES = {
    'doctor': (DoctorProfile, ('appointments',)),
    'patient': (PatientProfile, ('appointments', 'bills')),
    'staff': (StaffProfile, ('booked_appointments',)),
}


def _profile(user, role):
    if role not in ROLE_PROFILES:
        return None
    return ROLE_PROFILES[role][0].objects.filter(user=user).first()


def sync_role_profile(user, previous_role: str, *, hospital_changed: bool = False) -> None:
    """Swap the role profile after an admin changes ``user.role``.

    The old profile is removed only while nothing refers to it; otherwise
    the change is refused so no appointment or bill loses its owner.
    With ``hospital_changed`` the profile follows the user's new hospital.
    Must run inside the transaction that saves the user.
    """
    if user.role != previous_role:
        old = _profile(user, previous_role)
        if old is not None:
            for relation in ROLE_PROFILES[previous_role][1]:
                if getattr(old, relation).exists():
                    what = relation.replace('_', ' ')
                    raise DRFValidation({'role': f'Cannot change role: the {previous_role} profile still has {what}'})
            old.delete()
        if user.role in ROLE_PROFILES and _profile(user, user.role) is None:
            model = ROLE_PROFILES[user.role][0]
            extra = {'gender': user.gender} if model is PatientProfile else {}
            model.objects.create(user=user, hospital=user.hospital, **extra)
            logger.info('user %s moved from %s to %s', user.id, previous_role, user.role)

    current = _profile(user, user.role) if hospital_changed else None
    if current is not None and current.hospital_id != user.hospital_id:
        current.hospital = user.hospital
        current.save(update_fields=['hospital'])


def change_password(user, current: str, new: str) -> int:
    """Set a new password and revoke every refresh token the user holds.

    Returns how many tokens were blacklisted.
    """
    if not user.check_password(current):
        raise DRFValidation({'currentPassword': 'Current password is incorrect'})
    try:
        validate_password(new, user)
    except ValidationError as e:
        raise DRFValidation({'newPassword': e.messages})
    user.set_password(new)
    user.save(update_fields=['password'])
    return blacklist_refresh_tokens(user)


def blacklist_refresh_tokens(user) -> int:
    count = 0
    for token in OutstandingToken.objects.filter(user=user):
        _, created = BlacklistedToken.objects.get_or_create(token=token)
        count += int(created)
    return count
