"""Which hospital a signed-in user acts for."""
from django.core.exceptions import ObjectDoesNotExist
from rest_framework.exceptions import PermissionDenied


def profile_of(user, attr):
    try:
        return getattr(user, attr)
    except ObjectDoesNotExist:
        return None


def acting_hospital_id(user):
    """Hospital the user is bound to, preferring the role profile."""
    for attr in ('staff_profile', 'doctor_profile', 'patient_profile'):
        profile = profile_of(user, attr)
        if profile is not None and profile.hospital_id:
            return profile.hospital_id
    return user.hospital_id


def require_staff_hospital(user):
    hid = acting_hospital_id(user)
    if not hid:
        raise PermissionDenied('Staff member is not assigned to a hospital')
    return hid
