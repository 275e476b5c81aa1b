from rest_framework import serializers

from .models import InvoiceToImport, Payment, Transaction


class TransactionSerializer(serializers.ModelSerializer):
    """
    Serializer für Transaction Model
    """

    student_name = serializers.CharField(source="student.display_name", read_only=True)
    student_email = serializers.EmailField(source="student.email", read_only=True)
    class_id = serializers.CharField(source="klass.class_id", read_only=True)
    class_name = serializers.CharField(source="klass.class_name", read_only=True)
    payment_amount = serializers.IntegerField(read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "enrollment",
            "student",
            "student_name",
            "student_email",
            "klass",
            "class_id",
            "class_name",
            "transaction_type",
            "transaction_status",
            "amount_due",
            "payment_amount",
            "quantity",
            "due_date",
            "stripe_payment_intent_id",
            "invoice_number",
            "payout_id",
            "payout_date",
            "reconciled",
            "reconciliation_date",
            "downloaded",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TransactionStatusSerializer(serializers.Serializer):
    transaction_status = serializers.ChoiceField(choices=Transaction.Status.choices)


class TransactionIdSerializer(serializers.Serializer):
    transaction_id = serializers.IntegerField(min_value=1)


class PaymentSerializer(serializers.ModelSerializer):
    student = serializers.IntegerField(source="enrollment.student_id", read_only=True)
    class_id = serializers.CharField(source="enrollment.klass.class_id", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "enrollment",
            "student",
            "class_id",
            "amount_cents",
            "stripe_payment_intent_id",
            "stripe_receipt_url",
            "payment_status",
            "paid_at",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceToImportSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceToImport
        fields = "__all__"
