from typing import Annotated

from django.conf import settings
from django.shortcuts import get_object_or_404

from dependency_injector.wiring import Provide, inject
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.response import Response

from common.constants import DeletionStatus
from common.utils.view_utils import (
    ScheduleModelViewSet,
    get_bool_query_param,
    get_choice_query_param,
    get_clamped_int_query_param,
)
from customers.models import Customer
from scheduling.constants import MIN_GENERATION_WEEKS, SeriesStatus
from scheduling.exceptions import (
    AppointmentConflictAPIError,
    AppointmentConflictError,
    SchedulingNotFoundError,
    SchedulingValidationError,
)
from scheduling.filtersets import AppointmentFilterSet
from scheduling.models import Appointment, AppointmentSeries
from scheduling.serializers import (
    AppointmentSerializer,
    AppointmentSeriesSerializer,
    AppointmentWithSeriesSerializer,
)
from scheduling.services.scheduling_service import SchedulingService


WEEKS_QUERY_PARAMETER = OpenApiParameter(
    name="weeks",
    type=int,
    location=OpenApiParameter.QUERY,
    description="Generation horizon in weeks, clamped between 1 and 52",
    required=False,
)


class SchedulingErrorsMixin:
    """
    Turns scheduling exceptions raised by the services into API errors. Storage failures are
    not handled here and propagate as server errors.
    """

    def handle_exception(self, exc):
        if isinstance(exc, SchedulingNotFoundError):
            exc = NotFound(str(exc))
        elif isinstance(exc, AppointmentConflictError):
            exc = AppointmentConflictAPIError(str(exc))
        elif isinstance(exc, SchedulingValidationError):
            exc = ValidationError({exc.field or "non_field_errors": [str(exc)]})
        return super().handle_exception(exc)


class CustomerScopedViewMixin:
    """
    For routes nested under `customers/<customer_pk>/`. Unknown or soft deleted customers
    are a 404, and every lookup is restricted to the customer's own records.
    """

    customer: Customer

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.customer = get_object_or_404(Customer.objects, pk=self.kwargs["customer_pk"])

    def get_customer_id(self) -> int | None:
        if getattr(self, "swagger_fake_view", False):
            return None
        return int(self.kwargs["customer_pk"])

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["customer_id"] = self.get_customer_id()
        return context

    def get_generation_weeks(self) -> int:
        return get_clamped_int_query_param(
            self.request,
            "weeks",
            default=settings.SCHEDULING_DEFAULT_GENERATION_WEEKS,
            min_value=MIN_GENERATION_WEEKS,
            max_value=settings.SCHEDULING_MAX_GENERATION_WEEKS,
        )


@extend_schema_view(
    list=extend_schema(
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                enum=DeletionStatus.values,
                description="Which appointments to list, defaults to `active`",
                required=False,
            ),
            OpenApiParameter(
                name="include_series",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Embed the series of each appointment, with its weekday slots",
                required=False,
            ),
        ]
    )
)
class AppointmentViewSet(SchedulingErrorsMixin, CustomerScopedViewMixin, ScheduleModelViewSet):
    """
    ViewSet for the appointments of a customer. Deleting an appointment soft deletes it.
    """

    queryset = Appointment.all_objects.all().order_by("starts_at", "id")
    serializer_class = AppointmentSerializer
    filterset_class = AppointmentFilterSet

    def get_serializer_class(self):
        if self.action == "list" and get_bool_query_param(self.request, "include_series"):
            return AppointmentWithSeriesSerializer
        return super().get_serializer_class()

    def get_queryset(self):
        customer_id = self.get_customer_id()
        if customer_id is None:
            return Appointment.objects.none()

        queryset = super().get_queryset().filter_by_customer(customer_id)
        if self.action != "list":
            return queryset.not_deleted()

        deletion_status = get_choice_query_param(
            self.request, "status", DeletionStatus.values, DeletionStatus.ACTIVE
        )
        if deletion_status == DeletionStatus.ACTIVE:
            return queryset.not_deleted()
        if deletion_status == DeletionStatus.TRASHED:
            return queryset.only_deleted()
        return queryset

    @inject
    def perform_destroy(
        self,
        instance: Appointment,
        scheduling_service: Annotated[SchedulingService, Provide["scheduling_service"]],
    ):
        scheduling_service.delete_appointment(
            customer_id=self.customer.pk,
            appointment_id=instance.pk,
        )


@extend_schema_view(
    list=extend_schema(
        parameters=[
            OpenApiParameter(
                name="status",
                type=str,
                location=OpenApiParameter.QUERY,
                enum=SeriesStatus.values,
                description="Which series to list, defaults to `active`",
                required=False,
            ),
        ]
    ),
    create=extend_schema(
        parameters=[
            OpenApiParameter(
                name="generate",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Generate the appointments of the new series right away",
                required=False,
            ),
            WEEKS_QUERY_PARAMETER,
        ]
    ),
    update=extend_schema(
        parameters=[
            OpenApiParameter(
                name="regenerate",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Replace the future appointments of the series with new ones",
                required=False,
            ),
            WEEKS_QUERY_PARAMETER,
        ]
    ),
    partial_update=extend_schema(
        parameters=[
            OpenApiParameter(
                name="regenerate",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Replace the future appointments of the series with new ones",
                required=False,
            ),
            WEEKS_QUERY_PARAMETER,
        ]
    ),
    destroy=extend_schema(
        parameters=[
            OpenApiParameter(
                name="delete_future",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Also delete the appointments of the series starting from now",
                required=False,
            ),
        ]
    ),
)
class AppointmentSeriesViewSet(
    SchedulingErrorsMixin, CustomerScopedViewMixin, ScheduleModelViewSet
):
    """
    ViewSet for the recurring appointment series of a customer. Deleting a series
    deactivates it.
    """

    queryset = AppointmentSeries.objects.all().order_by("starts_on", "id")
    serializer_class = AppointmentSeriesSerializer

    def get_queryset(self):
        customer_id = self.get_customer_id()
        if customer_id is None:
            return AppointmentSeries.objects.none()

        queryset = super().get_queryset().filter_by_customer(customer_id)
        if self.action != "list":
            return queryset

        series_status = get_choice_query_param(
            self.request, "status", SeriesStatus.values, SeriesStatus.ACTIVE
        )
        if series_status == SeriesStatus.ACTIVE:
            return queryset.filter_active()
        if series_status == SeriesStatus.INACTIVE:
            return queryset.filter_inactive()
        return queryset

    def perform_create(self, serializer):
        serializer.save(
            generate=get_bool_query_param(self.request, "generate"),
            weeks=self.get_generation_weeks(),
        )

    def perform_update(self, serializer):
        serializer.save(
            regenerate=get_bool_query_param(self.request, "regenerate"),
            weeks=self.get_generation_weeks(),
        )

    @inject
    def perform_destroy(
        self,
        instance: AppointmentSeries,
        scheduling_service: Annotated[SchedulingService, Provide["scheduling_service"]],
    ):
        scheduling_service.deactivate_series(
            customer_id=self.customer.pk,
            series_id=instance.pk,
            delete_future_instances=get_bool_query_param(self.request, "delete_future"),
        )

    @extend_schema(
        summary="Generate series appointments",
        description=(
            "Creates the missing appointments of the series for the horizon, "
            "existing appointments are kept."
        ),
        request=None,
        parameters=[WEEKS_QUERY_PARAMETER],
        responses={201: AppointmentSerializer(many=True)},
    )
    @action(methods=["POST"], detail=True, url_path="generate", url_name="generate")
    @inject
    def generate(
        self,
        request,
        customer_pk,
        pk,
        scheduling_service: Annotated[SchedulingService, Provide["scheduling_service"]],
    ):
        series = self.get_object()
        appointments = scheduling_service.generate_series_appointments(
            customer_id=self.customer.pk,
            series_id=series.pk,
            weeks=self.get_generation_weeks(),
        )
        return Response(
            AppointmentSerializer(
                appointments, many=True, context=self.get_serializer_context()
            ).data,
            status=status.HTTP_201_CREATED,
        )
