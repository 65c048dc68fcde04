"""Role -> dashboard route table used after login and registration."""

ROLE_HOME = {
    'admin': '/admin/dashboard',
    'doctor': '/doctor/dashboard',
    'staff': '/staff/dashboard',
}


def home_route(role: str | None) -> str:
    return ROLE_HOME.get(role or '', '/')
