from typing import TYPE_CHECKING, Annotated

from dependency_injector.wiring import Provide, inject
from rest_framework import serializers

from common.utils.serializer_utils import HourMinuteTimeField, VirtualModelSerializer
from scheduling.models import Appointment, AppointmentSeries, AppointmentSeriesWeekday
from scheduling.services.dataclasses import (
    AppointmentInputData,
    AppointmentSeriesInputData,
    WeekdaySlotData,
)
from scheduling.timezone_utils import is_valid_timezone
from scheduling.virtual_models import (
    AppointmentSeriesVirtualModel,
    AppointmentSeriesWeekdayVirtualModel,
    AppointmentVirtualModel,
    AppointmentWithSeriesVirtualModel,
)


if TYPE_CHECKING:
    from scheduling.services.scheduling_service import SchedulingService


class SchedulingServiceSerializerMixin:
    @inject
    def __init__(
        self,
        *args,
        scheduling_service: Annotated[
            "SchedulingService | None", Provide["scheduling_service"]
        ] = None,
        **kwargs,
    ):
        self.scheduling_service = scheduling_service
        super().__init__(*args, **kwargs)

    def get_scheduling_service(self) -> "SchedulingService":
        if not self.scheduling_service:
            raise ValueError(
                "scheduling_service is not defined, please configure your DI container correctly"
            )
        return self.scheduling_service

    def get_customer_id(self) -> int:
        return self.context["customer_id"]


class AppointmentSerializer(SchedulingServiceSerializerMixin, VirtualModelSerializer):
    class Meta:
        model = Appointment
        virtual_model = AppointmentVirtualModel
        fields = (
            "id",
            "customer",
            "series",
            "title",
            "notes",
            "starts_at",
            "ends_at",
            "deleted_at",
            "created",
            "modified",
        )
        read_only_fields = ("id", "customer", "series", "deleted_at", "created", "modified")

    def validate(self, attrs):
        starts_at = attrs.get("starts_at", getattr(self.instance, "starts_at", None))
        ends_at = attrs.get("ends_at", getattr(self.instance, "ends_at", None))
        if starts_at and ends_at and ends_at <= starts_at:
            raise serializers.ValidationError({"ends_at": "ends_at must be after starts_at."})
        return attrs

    def create(self, validated_data):
        return self.get_scheduling_service().create_appointment(
            customer_id=self.get_customer_id(),
            data=AppointmentInputData(
                title=validated_data["title"],
                notes=validated_data.get("notes"),
                starts_at=validated_data["starts_at"],
                ends_at=validated_data["ends_at"],
            ),
        )

    def update(self, instance: Appointment, validated_data: dict) -> Appointment:
        return self.get_scheduling_service().update_appointment(
            customer_id=self.get_customer_id(),
            appointment_id=instance.pk,
            changes=validated_data,
        )


class AppointmentSeriesWeekdaySerializer(VirtualModelSerializer):
    start_time = HourMinuteTimeField(required=True)
    end_time = HourMinuteTimeField(required=True)

    class Meta:
        model = AppointmentSeriesWeekday
        virtual_model = AppointmentSeriesWeekdayVirtualModel
        fields = ("weekday", "start_time", "end_time")
        extra_kwargs = {"weekday": {"required": True}}

    def validate(self, attrs):
        # partial updates skip missing keys, but a slot is always sent whole
        missing_fields = {
            field_name: [serializers.Field.default_error_messages["required"]]
            for field_name in self.Meta.fields
            if field_name not in attrs
        }
        if missing_fields:
            raise serializers.ValidationError(missing_fields)

        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError({"end_time": "end_time must be after start_time."})
        return attrs


class AppointmentSeriesSerializer(SchedulingServiceSerializerMixin, VirtualModelSerializer):
    timezone = serializers.CharField(
        max_length=64,
        required=False,
        allow_null=True,
        allow_blank=True,
        help_text="IANA timezone of the weekday slots, defaults to the configured timezone",
    )
    weekdays = AppointmentSeriesWeekdaySerializer(
        many=True,
        help_text="Weekday slots, replaces every slot of the series when sent on updates",
    )

    class Meta:
        model = AppointmentSeries
        virtual_model = AppointmentSeriesVirtualModel
        fields = (
            "id",
            "customer",
            "title",
            "notes",
            "timezone",
            "starts_on",
            "ends_on",
            "is_active",
            "weekdays",
            "created",
            "modified",
        )
        read_only_fields = ("id", "customer", "created", "modified")

    def validate_timezone(self, timezone):
        if timezone and not is_valid_timezone(timezone):
            raise serializers.ValidationError(f"Invalid timezone: {timezone}")
        return timezone

    def validate_weekdays(self, weekdays):
        if not weekdays and self.instance is None:
            raise serializers.ValidationError("At least one weekday slot is required.")

        seen_slots = set()
        for slot in weekdays:
            slot_key = (slot["weekday"], slot["start_time"], slot["end_time"])
            if slot_key in seen_slots:
                raise serializers.ValidationError(
                    "Duplicate weekday slot "
                    f"({slot['weekday']}, {slot['start_time']:%H:%M}, {slot['end_time']:%H:%M})."
                )
            seen_slots.add(slot_key)
        return weekdays

    def validate(self, attrs):
        starts_on = attrs.get("starts_on", getattr(self.instance, "starts_on", None))
        ends_on = attrs.get("ends_on", getattr(self.instance, "ends_on", None))
        if starts_on and ends_on and ends_on < starts_on:
            raise serializers.ValidationError({"ends_on": "ends_on must be on or after starts_on."})
        return attrs

    def _build_weekday_slots(self, weekdays: list[dict]) -> list[WeekdaySlotData]:
        return [
            WeekdaySlotData(
                weekday=slot["weekday"],
                start_time=slot["start_time"],
                end_time=slot["end_time"],
            )
            for slot in weekdays
        ]

    def create(self, validated_data):
        generate = validated_data.pop("generate", False)
        weeks = validated_data.pop("weeks", None)

        return self.get_scheduling_service().create_series(
            customer_id=self.get_customer_id(),
            data=AppointmentSeriesInputData(
                title=validated_data["title"],
                notes=validated_data.get("notes"),
                timezone=validated_data.get("timezone"),
                starts_on=validated_data["starts_on"],
                ends_on=validated_data.get("ends_on"),
                is_active=validated_data.get("is_active", True),
                weekdays=self._build_weekday_slots(validated_data["weekdays"]),
            ),
            generate=generate,
            weeks=weeks,
        )

    def update(self, instance: AppointmentSeries, validated_data: dict) -> AppointmentSeries:
        regenerate = validated_data.pop("regenerate", False)
        weeks = validated_data.pop("weeks", None)
        weekdays = validated_data.pop("weekdays", None)

        return self.get_scheduling_service().update_series(
            customer_id=self.get_customer_id(),
            series_id=instance.pk,
            changes=validated_data,
            weekdays=self._build_weekday_slots(weekdays) if weekdays is not None else None,
            regenerate=regenerate,
            weeks=weeks,
        )


class AppointmentWithSeriesSerializer(AppointmentSerializer):
    series = AppointmentSeriesSerializer(read_only=True, allow_null=True)

    class Meta(AppointmentSerializer.Meta):
        virtual_model = AppointmentWithSeriesVirtualModel
