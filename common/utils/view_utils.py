from django.shortcuts import get_object_or_404

import django_virtual_models as v
from rest_framework import mixins, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.viewsets import ModelViewSet


TRUTHY_QUERY_PARAM_VALUES = ("1", "true", "yes", "on")
FALSY_QUERY_PARAM_VALUES = ("0", "false", "no", "off")


def get_bool_query_param(request, name: str, default: bool = False) -> bool:
    value = request.query_params.get(name)
    if value is None or value == "":
        return default

    normalized_value = value.strip().lower()
    if normalized_value in TRUTHY_QUERY_PARAM_VALUES:
        return True
    if normalized_value in FALSY_QUERY_PARAM_VALUES:
        return False
    raise ValidationError({name: [f"`{value}` is not a valid boolean."]})


def get_clamped_int_query_param(
    request, name: str, default: int, min_value: int, max_value: int
) -> int:
    """
    Reads an integer query param and clamps it to [min_value, max_value].
    Missing or empty values fall back to `default`, non integers are rejected.
    """
    value = request.query_params.get(name)
    if value is None or value == "":
        return default

    try:
        parsed_value = int(value)
    except ValueError as e:
        raise ValidationError({name: [f"`{value}` is not a valid integer."]}) from e

    return max(min_value, min(parsed_value, max_value))


def get_choice_query_param(request, name: str, choices, default: str) -> str:
    value = request.query_params.get(name)
    if value is None or value == "":
        return default

    if value not in choices:
        raise ValidationError(
            {name: [f"`{value}` is not a valid choice. Use one of: {', '.join(choices)}."]}
        )
    return value


class RefetchReturnInstanceAfterWriteMixin:
    """
    Serializes the response of write actions from a freshly fetched instance, so the
    annotations, prefetches and selects done by `get_queryset` are present in the output.
    """

    def get_write_serializer(self, *args, **kwargs):
        serializer_class = getattr(self, "write_serializer_class", None) or (
            self.get_serializer_class()
        )
        kwargs["context"] = self.get_serializer_context()
        return serializer_class(*args, **kwargs)

    def get_return_object(self, instance):
        queryset = self.filter_queryset(self.get_queryset())
        obj = get_object_or_404(queryset, pk=instance.pk)

        # May raise a permission denied
        self.check_object_permissions(self.request, obj)

        return obj


class CreateModelMixin(RefetchReturnInstanceAfterWriteMixin, mixins.CreateModelMixin):
    def create(self, request, *args, **kwargs):
        serializer = self.get_write_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)

        return_serializer = self.get_serializer(self.get_return_object(serializer.instance))
        headers = self.get_success_headers(return_serializer.data)
        return Response(return_serializer.data, status=status.HTTP_201_CREATED, headers=headers)


class UpdateModelMixin(RefetchReturnInstanceAfterWriteMixin, mixins.UpdateModelMixin):
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_write_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)

        return_serializer = self.get_serializer(self.get_return_object(serializer.instance))
        return Response(return_serializer.data)


class FilterOnlyOnListMixin:
    def filter_queryset(self, queryset):
        if self.action != "list":
            return queryset
        return super().filter_queryset(queryset)


class ScheduleModelViewSet(
    CreateModelMixin,
    UpdateModelMixin,
    FilterOnlyOnListMixin,
    v.GenericVirtualModelViewMixin,
    ModelViewSet,
):
    """
    A viewset that provides default `create()`, `retrieve()`, `update()`,
    `partial_update()`, `destroy()` and `list()` actions.
    It refetches the instance after write operations to ensure the latest data is returned.
    """

    lookup_value_converter = "int"
