"""
Time slots and the doctor's weekly calendar grid.

Appointments are booked in 30 minute slots in a morning block
(09:00-11:30) and an afternoon block (14:00-16:30).  Lunch slots are not
bookable, but an appointment moved there by hand still has to show up,
so the grid has a separate lunch row per day.  Weeks start on Sunday.
"""
from __future__ import annotations

import datetime as dt
from typing import Iterable, Sequence

MORNING_SLOTS: tuple[str, ...] = ('09:00', '09:30', '10:00', '10:30', '11:00', '11:30')
AFTERNOON_SLOTS: tuple[str, ...] = ('14:00', '14:30', '15:00', '15:30', '16:00', '16:30')
TIME_SLOTS: tuple[str, ...] = MORNING_SLOTS + AFTERNOON_SLOTS
LUNCH_SLOTS: tuple[str, ...] = ('12:00', '12:30', '13:00', '13:30')


def is_bookable_slot(slot: str) -> bool:
    return slot in TIME_SLOTS


def week_start(day: dt.date) -> dt.date:
    """Sunday on or before ``day``."""
    # date.weekday(): Monday == 0 ... Sunday == 6
    return day - dt.timedelta(days=(day.weekday() + 1) % 7)


def week_days(day: dt.date) -> list[dt.date]:
    start = week_start(day)
    return [start + dt.timedelta(days=i) for i in range(7)]


def available_slots(booked: Iterable[str]) -> list[str]:
    taken = set(booked)
    return [slot for slot in TIME_SLOTS if slot not in taken]


def _date_of(appointment) -> dt.date:
    value = appointment['date']
    return value if isinstance(value, dt.date) else dt.date.fromisoformat(str(value)[:10])


def build_week_grid(appointments: Sequence[dict], day: dt.date) -> dict:
    """Lay ``appointments`` onto the week containing ``day``.

    Each appointment is a dict with at least ``date``, ``time`` and
    ``status``.  Cancelled appointments are left out.  Returns::

        {
          'weekStart': 'YYYY-MM-DD', 'weekEnd': 'YYYY-MM-DD',
          'days': ['YYYY-MM-DD', ...7],
          'slots': [{'time': '09:00', 'period': 'morning', 'cells': {'YYYY-MM-DD': [...]}}, ...],
          'lunch': {'YYYY-MM-DD': [...]},
        }
    """
    days = week_days(day)
    keys = [d.isoformat() for d in days]
    by_cell: dict[tuple[str, str], list[dict]] = {}
    for appointment in appointments:
        if appointment.get('status') == 'cancelled':
            continue
        key = _date_of(appointment).isoformat()
        if key not in keys:
            continue
        by_cell.setdefault((key, appointment['time']), []).append(appointment)

    slots = [
        {
            'time': slot,
            'period': 'morning' if slot in MORNING_SLOTS else 'afternoon',
            'cells': {k: by_cell.get((k, slot), []) for k in keys},
        }
        for slot in TIME_SLOTS
    ]
    lunch = {
        k: [a for slot in LUNCH_SLOTS for a in by_cell.get((k, slot), [])]
        for k in keys
    }
    return {
        'weekStart': keys[0],
        'weekEnd': keys[-1],
        'days': keys,
        'slots': slots,
        'lunch': lunch,
    }
