"""
Bucket people by the hospital they belong to.

The admin screens show doctors, patients and staff in one collapsible
section per hospital, with a count of active members (and for doctors
the appointments they carry) in each section header.  The reduction is
a single pass over an already fetched list:

* every known hospital (and the ``unassigned`` bucket) exists up
  front, so empty sections still show when no filter is active;
* members without a hospital land in the ``unassigned`` bucket;
* with a filter active, empty buckets are dropped;
* buckets sort by hospital name, ``unassigned`` always last.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

UNASSIGNED_ID = 'unassigned'


@dataclass
class HospitalBucket:
    hospital: dict
    items: list = field(default_factory=list)
    active: int = 0
    total_metric: int = 0

    @property
    def is_unassigned(self) -> bool:
        return self.hospital.get('_id') == UNASSIGNED_ID

    def as_dict(self, item_key: str = 'items', active_key: str = 'activeCount',
                metric_key: Optional[str] = None) -> dict:
        data = {
            'hospital': self.hospital,
            item_key: self.items,
            'count': len(self.items),
            active_key: self.active,
        }
        if metric_key:
            data[metric_key] = self.total_metric
        return data


def group_by_hospital(
    items: Iterable[Any],
    hospitals: Iterable[dict],
    *,
    hospital_of: Callable[[Any], Optional[dict]],
    is_active: Callable[[Any], bool] = lambda item: True,
    metric: Callable[[Any], int] = lambda item: 0,
    filters_active: bool = False,
    unassigned_label: str = 'Unassigned',
) -> list[HospitalBucket]:
    """Group ``items`` into one :class:`HospitalBucket` per hospital.

    ``hospitals`` are dicts with at least ``_id`` and ``name``;
    ``hospital_of`` returns such a dict for an item, or ``None``.
    """
    buckets: dict[str, HospitalBucket] = {
        UNASSIGNED_ID: HospitalBucket(hospital={'_id': UNASSIGNED_ID, 'name': unassigned_label}),
    }
    for hospital in hospitals:
        buckets.setdefault(str(hospital['_id']), HospitalBucket(hospital=hospital))

    for item in items:
        hospital = hospital_of(item)
        key = str(hospital['_id']) if hospital and hospital.get('_id') is not None else UNASSIGNED_ID
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = HospitalBucket(hospital=hospital)
        bucket.items.append(item)
        if is_active(item):
            bucket.active += 1
        bucket.total_metric += metric(item) or 0

    result = [b for b in buckets.values() if b.items or not filters_active]
    result.sort(key=lambda b: (b.is_unassigned, (b.hospital.get('name') or '').lower()))
    return result
