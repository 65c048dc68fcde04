"""
Expense endpoints.

Administrators see every hospital's expenses; staff only their own
hospital's, and they may record or edit expenses but not approve or
reject them.  ``billImage`` may be sent as a multipart upload.
"""
from __future__ import annotations

from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import HasRole
from ..serializers.expense import ExpenseListQuerySerializer, ExpenseSerializer
from ..services import expenses as svc
from ..services.audit import log_action

AdminOrStaff = HasRole.of('admin', 'staff')


def _filtered(request):
    q = ExpenseListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    return svc.filter_expenses(
        svc.scoped_expenses(request.user),
        q=vd.get('q'), category=vd.get('category'), hospital_id=vd.get('hospitalId'),
        status=vd.get('status'), date_from=vd.get('from'), date_to=vd.get('to'),
        sort_by=vd.get('sortBy'), sort_order=vd.get('sortOrder'),
    )


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, AdminOrStaff])
def expenses(request):
    if request.method == 'POST':
        s = ExpenseSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        expense = svc.create_expense(request.user, s.validated_data)
        log_action(user=request.user, action='expense_create', object_type='expense', object_id=expense.id,
                   detail={'amount': str(expense.amount), 'category': expense.category})
        return Response(svc.format_expense(expense, request), status=201)
    return Response([svc.format_expense(e, request) for e in _filtered(request)])


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, AdminOrStaff])
def expense_detail(request, expense_id: int):
    expense = svc.get_visible(request.user, expense_id)
    if request.method == 'GET':
        return Response(svc.format_expense(expense, request))
    if request.method == 'DELETE':
        log_action(user=request.user, action='expense_delete', object_type='expense', object_id=expense.id,
                   detail={'amount': str(expense.amount)})
        expense.delete()
        return Response({'ok': True, 'message': 'Expense deleted successfully'})
    s = ExpenseSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    expense = svc.update_expense(request.user, expense, s.validated_data)
    log_action(user=request.user, action='expense_update', object_type='expense', object_id=expense.id)
    return Response(svc.format_expense(expense, request))


@api_view(['GET'])
@permission_classes([IsAuthenticated, AdminOrStaff])
def expense_summary(request):
    return Response(svc.summarize(_filtered(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, AdminOrStaff])
def expense_export(request):
    body = svc.export_csv(_filtered(request))
    resp = HttpResponse(body, content_type='text/csv')
    filename = f"expenses_{timezone.localdate():%Y-%m-%d}.csv"
    resp['Content-Disposition'] = f'attachment; filename="{filename}"'
    return resp
