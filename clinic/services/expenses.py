import csv
import io
import logging
from decimal import Decimal

from django.db.models import Count, Q, Sum
from rest_framework.exceptions import NotFound, PermissionDenied

from clinic.models import Expense, Hospital, User
from clinic.services.hospitals import hospital_ref
from clinic.services.scope import require_staff_hospital

logger = logging.getLogger(__name__)

CSV_HEADERS = ['Date', 'Category', 'Amount', 'Description', 'Vendor', 'Payment Method', 'Status', 'Hospital']
APPROVAL_STATUSES = ('completed', 'rejected')
SORT_FIELDS = {'date': 'date', 'amount': 'amount'}


def format_expense(e: Expense, request=None) -> dict:
    image = None
    if e.bill_image:
        image = request.build_absolute_uri(e.bill_image.url) if request else e.bill_image.url
    return {
        '_id': e.id,
        'category': e.category,
        'amount': float(e.amount),
        'description': e.description,
        'date': e.date.isoformat(),
        'vendorName': e.vendor_name,
        'paymentMethod': e.payment_method,
        'status': e.status,
        'billImage': image,
        'hospital': hospital_ref(e.hospital),
        'createdBy': e.created_by_id,
        'createdAt': e.created_at.isoformat() if e.created_at else None,
    }


def scoped_expenses(user):
    qs = Expense.objects.select_related('hospital')
    if user.role == User.ROLE_STAFF:
        return qs.filter(hospital_id=require_staff_hospital(user))
    return qs


def filter_expenses(qs, *, q=None, category=None, hospital_id=None, status=None,
                    date_from=None, date_to=None, sort_by=None, sort_order=None):
    if q:
        qs = qs.filter(Q(description__icontains=q) | Q(vendor_name__icontains=q))
    if category:
        qs = qs.filter(category=category)
    if hospital_id:
        qs = qs.filter(hospital_id=hospital_id)
    if status:
        qs = qs.filter(status=status)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    field = SORT_FIELDS.get(sort_by or 'date', 'date')
    prefix = '' if sort_order == 'asc' else '-'
    return qs.order_by(f'{prefix}{field}', f'{prefix}id')


def _round(value) -> float:
    return float(Decimal(value or 0).quantize(Decimal('0.01')))


def summarize(qs) -> dict:
    totals = qs.aggregate(total=Sum('amount'), count=Count('id'))
    by_category = {
        row['category']: _round(row['total'])
        for row in qs.order_by().values('category').annotate(total=Sum('amount'))
    }
    return {'total': _round(totals['total']), 'count': totals['count'], 'byCategory': by_category}


def export_csv(qs) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADERS)
    for e in qs:
        writer.writerow([
            e.date.isoformat(),
            e.category,
            f'{e.amount:.2f}',
            e.description,
            e.vendor_name,
            e.payment_method,
            e.status,
            e.hospital.name if e.hospital else '',
        ])
    return buf.getvalue()


def get_visible(user, expense_id) -> Expense:
    obj = scoped_expenses(user).filter(id=expense_id).first()
    if not obj:
        raise NotFound('Expense not found')
    return obj


def _check_write(user, data: dict, current_status=None) -> None:
    if user.role != User.ROLE_STAFF:
        return
    status = data.get('status')
    if status in APPROVAL_STATUSES and status != current_status:
        raise PermissionDenied('Staff cannot approve or reject expenses')


def _hospital_for(user, data: dict):
    if user.role == User.ROLE_STAFF:
        return Hospital.objects.get(id=require_staff_hospital(user))
    hid = data.get('hospitalId')
    if not hid:
        return None
    h = Hospital.objects.filter(id=hid).first()
    if not h:
        raise NotFound('Hospital not found')
    return h


_FIELDS = (
    ('category', 'category'), ('amount', 'amount'), ('description', 'description'), ('date', 'date'),
    ('vendorName', 'vendor_name'), ('paymentMethod', 'payment_method'), ('status', 'status'),
)


def create_expense(user, data: dict) -> Expense:
    _check_write(user, data)
    expense = Expense(hospital=_hospital_for(user, data), created_by=user)
    for key, attr in _FIELDS:
        if key in data:
            setattr(expense, attr, data[key])
    if data.get('billImage'):
        expense.bill_image = data['billImage']
    expense.save()
    logger.info('expense %s created by %s', expense.id, user.id)
    return expense


def update_expense(user, expense: Expense, data: dict) -> Expense:
    _check_write(user, data, current_status=expense.status)
    if 'hospitalId' in data and user.role != User.ROLE_STAFF:
        expense.hospital = _hospital_for(user, data)
    for key, attr in _FIELDS:
        if key in data:
            setattr(expense, attr, data[key])
    if data.get('billImage'):
        expense.bill_image = data['billImage']
    expense.save()
    return expense
