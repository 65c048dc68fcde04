from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import require_role
from ..serializers.billing import BillCreateSerializer, PayBillsSerializer
from ..services import billing as svc
from ..services.audit import log_action


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bills(request):
    if request.method == 'POST':
        require_role(request, 'admin', 'staff')
        s = BillCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        bill = svc.create_bill(request.user, s.validated_data)
        log_action(user=request.user, action='bill_create', object_type='bill', object_id=bill.id,
                   detail={'amount': str(bill.amount)})
        return Response(svc.format_bill(svc.get_visible(request.user, bill.id)), status=201)
    svc.refresh_overdue()
    qs = svc.scoped_bills(request.user)
    status = request.query_params.get('status')
    if status:
        qs = qs.filter(status=status)
    return Response([svc.format_bill(b) for b in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bill_detail(request, bill_id: int):
    svc.refresh_overdue()
    return Response(svc.format_bill(svc.get_visible(request.user, bill_id)))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pay_bills(request):
    """Pay the listed bills, or every outstanding bill of the calling patient."""
    s = PayBillsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = svc.pay(request.user, s.validated_data.get('ids'))
    if result['paid']:
        log_action(user=request.user, action='bill_pay', object_type='bill',
                   detail={'ids': s.validated_data.get('ids'), 'paid': result['paid']})
    return Response(result)
