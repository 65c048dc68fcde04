import datetime as dt

from clinic.services import calendar


def test_slot_tables():
    assert len(calendar.TIME_SLOTS) == 12
    assert calendar.MORNING_SLOTS[0] == '09:00' and calendar.MORNING_SLOTS[-1] == '11:30'
    assert calendar.AFTERNOON_SLOTS[0] == '14:00' and calendar.AFTERNOON_SLOTS[-1] == '16:30'
    assert not any(calendar.is_bookable_slot(s) for s in calendar.LUNCH_SLOTS)


def test_week_starts_on_sunday():
    wednesday = dt.date(2024, 5, 15)
    assert calendar.week_start(wednesday) == dt.date(2024, 5, 12)
    sunday = dt.date(2024, 5, 12)
    assert calendar.week_start(sunday) == sunday
    saturday = dt.date(2024, 5, 18)
    assert calendar.week_start(saturday) == sunday
    assert calendar.week_days(wednesday)[-1] == saturday


def test_available_slots_keep_order():
    free = calendar.available_slots(['09:30', '14:00'])
    assert free[:2] == ['09:00', '10:00']
    assert '14:00' not in free
    assert len(free) == 10


def test_grid_places_appointments_and_skips_cancelled():
    day = dt.date(2024, 5, 15)
    appointments = [
        {'date': '2024-05-15', 'time': '09:00', 'status': 'pending', 'id': 1},
        {'date': dt.date(2024, 5, 15), 'time': '09:00', 'status': 'confirmed', 'id': 2},
        {'date': '2024-05-15', 'time': '10:00', 'status': 'cancelled', 'id': 3},
        {'date': '2024-05-16', 'time': '12:30', 'status': 'pending', 'id': 4},
        {'date': '2024-05-25', 'time': '09:00', 'status': 'pending', 'id': 5},
    ]
    grid = calendar.build_week_grid(appointments, day)
    assert grid['weekStart'] == '2024-05-12'
    assert grid['weekEnd'] == '2024-05-18'
    periods = {row['time']: row['period'] for row in grid['slots']}
    assert periods['11:30'] == 'morning' and periods['14:00'] == 'afternoon'
    slots = {row['time']: row['cells'] for row in grid['slots']}
    assert [a['id'] for a in slots['09:00']['2024-05-15']] == [1, 2]
    assert slots['10:00']['2024-05-15'] == []
    assert [a['id'] for a in grid['lunch']['2024-05-16']] == [4]
    assert all(a['id'] != 5 for cells in slots.values() for items in cells.values() for a in items)
