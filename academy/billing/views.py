"""
Academy Billing Views

API Endpoints:
- /api/academy/transactions/                    - Ledger (filters: status, type, reconciled)
- /api/academy/transactions/{id}/status/        - Status transition (PATCH)
- /api/academy/transactions/reconcile/          - Mark a transaction reconciled
- /api/academy/transactions/unreconcile/        - Clear the reconciliation flag
- /api/academy/transactions/payouts/            - Transactions grouped by Stripe payout
- /api/academy/transactions/sync-payouts/       - Pull payouts from Stripe
- /api/academy/payments/                        - Captured payments (filter: student)
- /api/academy/exports/transactions.csv         - Accounting export of new transactions
- /api/academy/exports/invoices.csv             - Accounting export of staged invoices

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""

import logging

from django.http import HttpResponse
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Payment, Transaction
from .serializers import (
    PaymentSerializer,
    TransactionIdSerializer,
    TransactionSerializer,
    TransactionStatusSerializer,
)
from .services.exports import export_invoices_csv, export_transactions_csv
from .services.reconciliation import (
    reconcile_transaction,
    sync_payouts,
    unreconcile_transaction,
    unreconciled_payout_groups,
)

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes")
FALSE_VALUES = ("0", "false", "no")


class TransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet für Transaktionen

    Transaktionen werden nie gelöscht, nur über ihren Status fortgeschrieben.
    """

    queryset = Transaction.objects.select_related("student", "klass", "enrollment").all()
    serializer_class = TransactionSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        transaction_status = params.get("status")
        if transaction_status:
            queryset = queryset.filter(transaction_status=transaction_status)
        transaction_type = params.get("type")
        if transaction_type:
            queryset = queryset.filter(transaction_type=transaction_type)
        reconciled = (params.get("reconciled") or "").lower()
        if reconciled in TRUE_VALUES:
            queryset = queryset.filter(reconciled=True)
        elif reconciled in FALSE_VALUES:
            queryset = queryset.filter(reconciled=False)
        student = params.get("student")
        if student and student.isdigit():
            queryset = queryset.filter(student_id=int(student))
        return queryset

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        """Status einer Transaktion ändern"""
        row = self.get_object()
        serializer = TransactionStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["transaction_status"]

        if new_status == row.transaction_status:
            return Response(self.get_serializer(row).data)
        if not row.can_transition_to(new_status):
            return Response(
                {
                    "error": f"Cannot change status from {row.transaction_status} to {new_status}",
                    "current_status": row.transaction_status,
                },
                status=status.HTTP_409_CONFLICT,
            )

        old_status = row.transaction_status
        row.transaction_status = new_status
        row.save(update_fields=["transaction_status", "updated_at"])
        logger.info(f"Transaction {row.pk}: {old_status} -> {new_status} by {request.user}")
        return Response(self.get_serializer(row).data)

    def _transaction_id_from(self, request):
        serializer = TransactionIdSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data["transaction_id"]

    @action(detail=False, methods=["post"])
    def reconcile(self, request):
        return reconcile_transaction(self._transaction_id_from(request)).to_response()

    @action(detail=False, methods=["post"])
    def unreconcile(self, request):
        return unreconcile_transaction(self._transaction_id_from(request)).to_response()

    @action(detail=False, methods=["get"])
    def payouts(self, request):
        """Transaktionen gruppiert nach Stripe Payout"""
        include_reconciled = (request.query_params.get("include_reconciled") or "").lower() in TRUE_VALUES
        groups = unreconciled_payout_groups(include_reconciled=include_reconciled)

        def serialize(rows):
            return self.get_serializer(rows, many=True).data

        return Response([group.to_dict(serialize) for group in groups])

    @action(detail=False, methods=["post"], url_path="sync-payouts")
    def sync_stripe_payouts(self, request):
        limit = request.data.get("limit", 20)
        try:
            limit = max(1, min(int(limit), 100))
        except (TypeError, ValueError):
            return Response({"error": "limit must be a number"}, status=status.HTTP_400_BAD_REQUEST)
        return sync_payouts(limit=limit).to_response()


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet für Zahlungen
    """

    queryset = Payment.objects.select_related("enrollment", "enrollment__klass").all()
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAdminUser]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        queryset = super().get_queryset()
        student = self.request.query_params.get("student")
        if student and student.isdigit():
            queryset = queryset.filter(enrollment__student_id=int(student))
        return queryset


def _csv_response(export):
    response = HttpResponse(export.content, content_type="text/csv")
    response["Content-Disposition"] = f'attachment; filename="{export.filename}"'
    return response


class TransactionExportView(APIView):
    """
    CSV Export aller noch nicht exportierten Transaktionen
    """

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        export = export_transactions_csv()
        if export is None:
            return Response({"message": "No new transactions to export"})
        return _csv_response(export)


class InvoiceExportView(APIView):
    """
    CSV Export der Rechnungen für den Buchhaltungsimport
    """

    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        export = export_invoices_csv()
        if export is None:
            return Response({"message": "No invoices to export"})
        return _csv_response(export)
