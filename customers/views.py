from django.db import IntegrityError, transaction

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from common.constants import DeletionStatus
from common.utils.view_utils import ScheduleModelViewSet, get_choice_query_param
from customers.filtersets import CustomerFilterSet
from customers.models import Customer
from customers.serializers import CustomerSerializer, is_email_in_use_violation


RESTORE_EMAIL_IN_USE_MESSAGE = "Another customer is already using this email."


@extend_schema_view(
    list=extend_schema(
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                enum=DeletionStatus.values,
                description="Which customers to list, defaults to `active`",
                required=False,
            ),
        ]
    )
)
class CustomerViewSet(ScheduleModelViewSet):
    """
    ViewSet for managing customers. Deleting a customer soft deletes it, it can be
    restored or removed for good with `force-delete`.
    """

    queryset = Customer.all_objects.all().order_by("id")
    serializer_class = CustomerSerializer
    filterset_class = CustomerFilterSet

    def get_queryset(self):
        queryset = super().get_queryset()

        if self.action == "list":
            deletion_status = get_choice_query_param(
                self.request, "status", DeletionStatus.values, DeletionStatus.ACTIVE
            )
            if deletion_status == DeletionStatus.ACTIVE:
                return queryset.not_deleted()
            if deletion_status == DeletionStatus.TRASHED:
                return queryset.only_deleted()
            return queryset

        if self.action == "restore":
            return queryset.only_deleted()
        if self.action == "force_delete":
            return queryset
        return queryset.not_deleted()

    def perform_destroy(self, instance: Customer):
        instance.soft_delete()

    @extend_schema(request=None, responses={200: CustomerSerializer})
    @action(methods=["POST"], detail=True, url_path="restore", url_name="restore")
    def restore(self, request, *args, **kwargs):
        customer = self.get_object()

        if Customer.objects.filter(email__iexact=customer.email).exists():
            raise ValidationError({"email": [RESTORE_EMAIL_IN_USE_MESSAGE]})

        try:
            with transaction.atomic():
                customer.restore()
        except IntegrityError as e:
            if is_email_in_use_violation(e):
                raise ValidationError({"email": [RESTORE_EMAIL_IN_USE_MESSAGE]}) from e
            raise

        return Response(self.get_serializer(customer).data)

    @extend_schema(request=None, responses={204: None})
    @action(methods=["DELETE"], detail=True, url_path="force-delete", url_name="force-delete")
    def force_delete(self, request, *args, **kwargs):
        customer = self.get_object()
        customer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
