import django_virtual_models as v
from rest_framework import serializers


class VirtualModelSerializer(v.VirtualModelSerializerMixin, serializers.ModelSerializer):
    pass


class HourMinuteTimeField(serializers.TimeField):
    """Time of day written and read as 24-hour `HH:MM`, seconds are not accepted."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("format", "%H:%M")
        kwargs.setdefault("input_formats", ["%H:%M"])
        super().__init__(*args, **kwargs)
