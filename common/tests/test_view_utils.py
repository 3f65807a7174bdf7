import pytest
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from common.constants import DeletionStatus
from common.utils.view_utils import (
    get_bool_query_param,
    get_choice_query_param,
    get_clamped_int_query_param,
)


def build_request(query_params=None):
    return Request(APIRequestFactory().get("/", query_params or {}))


@pytest.mark.parametrize(
    "value, expected",
    [("true", True), ("1", True), ("Yes", True), ("false", False), ("0", False), ("off", False)],
)
def test_get_bool_query_param(value, expected):
    assert get_bool_query_param(build_request({"generate": value}), "generate") is expected


def test_get_bool_query_param_default():
    assert get_bool_query_param(build_request(), "generate") is False
    assert get_bool_query_param(build_request({"generate": ""}), "generate", default=True) is True


def test_get_bool_query_param_rejects_other_values():
    with pytest.raises(ValidationError) as exc_info:
        get_bool_query_param(build_request({"generate": "maybe"}), "generate")

    assert "generate" in exc_info.value.detail


@pytest.mark.parametrize(
    "value, expected", [("5", 5), ("0", 1), ("-2", 1), ("52", 52), ("53", 52), ("", 12)]
)
def test_get_clamped_int_query_param(value, expected):
    request = build_request({"weeks": value})

    assert (
        get_clamped_int_query_param(request, "weeks", default=12, min_value=1, max_value=52)
        == expected
    )


def test_get_clamped_int_query_param_rejects_non_integers():
    with pytest.raises(ValidationError) as exc_info:
        get_clamped_int_query_param(
            build_request({"weeks": "two"}), "weeks", default=12, min_value=1, max_value=52
        )

    assert "weeks" in exc_info.value.detail


def test_get_choice_query_param():
    request = build_request({"status": "trashed"})

    assert get_choice_query_param(request, "status", DeletionStatus.values, "active") == "trashed"
    assert get_choice_query_param(build_request(), "status", DeletionStatus.values, "active") == (
        "active"
    )


def test_get_choice_query_param_rejects_unknown_values():
    with pytest.raises(ValidationError):
        get_choice_query_param(
            build_request({"status": "gone"}), "status", DeletionStatus.values, "active"
        )
