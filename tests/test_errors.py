"""Unit tests for the application error model."""

from types import SimpleNamespace

import pytest

from goagent.domain.errors import (
    FALLBACK_ERROR_MESSAGE,
    AppError,
    ErrorKind,
    STATUS_CODES,
    SyncFailure,
    describe_error,
)


class TestDescribeError:
    def test_exception_message(self):
        assert describe_error(Exception("x")) == "x"

    def test_exception_without_message_uses_class_name(self):
        assert describe_error(TimeoutError()) == "TimeoutError"

    def test_dict_message(self):
        assert describe_error({"message": "y"}) == "y"

    def test_error_description_then_detail(self):
        assert describe_error({"error_description": "bad grant"}) == "bad grant"
        assert describe_error({"detail": "nope"}) == "nope"
        assert describe_error(SimpleNamespace(detail="from attr")) == "from attr"

    def test_message_wins_over_detail(self):
        assert describe_error({"detail": "d", "message": "m"}) == "m"

    @pytest.mark.parametrize("value", [None, {}, [], "", "   "])
    def test_empty_values_use_fallback(self, value):
        assert describe_error(value) == FALLBACK_ERROR_MESSAGE

    def test_circular_object_uses_fallback(self):
        circular = {}
        circular["self"] = circular
        assert describe_error(circular) == FALLBACK_ERROR_MESSAGE

    def test_unserializable_object_uses_fallback(self):
        assert describe_error(object()) == FALLBACK_ERROR_MESSAGE

    def test_other_payload_is_dumped(self):
        assert describe_error({"code": 42}) == '{"code": 42}'

    @pytest.mark.parametrize(
        "value",
        [Exception("x"), {"message": "y"}, {}, None, object(), {"code": 1}, "text"],
    )
    def test_never_object_object(self, value):
        text = describe_error(value)
        assert text
        assert "[object Object]" not in text

    def test_app_error(self):
        assert describe_error(AppError(ErrorKind.AUTH_EXISTS, "taken")) == "taken"


class TestAppError:
    def test_default_message_and_status(self):
        err = AppError(ErrorKind.AUTH_INVALID)
        assert err.message == "Invalid email or password."
        assert err.status_code == 401

    def test_every_kind_has_status(self):
        assert set(STATUS_CODES) == set(ErrorKind)

    def test_validation_carries_field(self):
        err = AppError.validation("Bad", field="coordinates")
        assert err.to_dict() == {"detail": "Bad", "kind": "validation", "field": "coordinates"}
        assert err.status_code == 422

    def test_sync_failure_is_network(self):
        err = SyncFailure()
        assert err.kind == ErrorKind.NETWORK
        assert err.status_code == 503
        assert "Network error" in err.message
