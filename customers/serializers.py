from django.db import IntegrityError, transaction

from psycopg import errors as psycopg_errors
from rest_framework import serializers

from common.utils.serializer_utils import VirtualModelSerializer
from customers.models import CUSTOMERS_EMAIL_UNIQUE_CONSTRAINT, Customer
from customers.virtual_models import CustomerVirtualModel


EMAIL_IN_USE_MESSAGE = "A customer with this email already exists."


def is_email_in_use_violation(error: IntegrityError) -> bool:
    cause = error.__cause__
    return (
        isinstance(cause, psycopg_errors.UniqueViolation)
        and cause.diag.constraint_name == CUSTOMERS_EMAIL_UNIQUE_CONSTRAINT
    )


class CustomerSerializer(VirtualModelSerializer):
    email = serializers.EmailField(max_length=254)

    class Meta:
        model = Customer
        virtual_model = CustomerVirtualModel
        fields = (
            "id",
            "name",
            "email",
            "phone",
            "deleted_at",
            "created",
            "modified",
        )
        read_only_fields = ("id", "deleted_at", "created", "modified")

    def validate_email(self, email):
        # only customers that were not soft deleted hold on to their email
        queryset = Customer.objects.filter(email__iexact=email)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(EMAIL_IN_USE_MESSAGE)
        return email

    def create(self, validated_data):
        try:
            with transaction.atomic():
                return super().create(validated_data)
        except IntegrityError as e:
            # another request took the email after validate_email ran
            if is_email_in_use_violation(e):
                raise serializers.ValidationError({"email": [EMAIL_IN_USE_MESSAGE]}) from e
            raise

    def update(self, instance, validated_data):
        try:
            with transaction.atomic():
                return super().update(instance, validated_data)
        except IntegrityError as e:
            if is_email_in_use_violation(e):
                raise serializers.ValidationError({"email": [EMAIL_IN_USE_MESSAGE]}) from e
            raise
