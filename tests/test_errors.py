"""Tests for the perch error taxonomy and the abort/authorize guards."""

import pytest

from perch import abort, authorize
from perch.data.errors import ColumnError, DataError, NotFoundError, QueryError
from perch.errors import (
    ConfigurationError,
    ForbiddenError,
    HTTPError,
    PerchError,
    ResolutionError,
    RouteNotFoundError,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [
            ConfigurationError,
            ResolutionError,
            HTTPError,
            RouteNotFoundError,
            ForbiddenError,
            ValidationError,
            DataError,
            QueryError,
            NotFoundError,
            ColumnError,
        ],
    )
    def test_everything_is_a_perch_error(self, cls: type) -> None:
        assert issubclass(cls, PerchError)

    def test_data_errors(self) -> None:
        assert issubclass(QueryError, DataError)
        assert issubclass(NotFoundError, DataError)
        assert issubclass(ColumnError, KeyError)


class TestHTTPError:
    def test_route_not_found(self) -> None:
        exc = RouteNotFoundError()
        assert exc.status == 404
        assert str(exc) == "404: Not Found"

    def test_forbidden(self) -> None:
        exc = ForbiddenError("Not your note")
        assert exc.status == 403
        assert exc.detail == "Not your note"

    def test_str_without_detail(self) -> None:
        assert str(HTTPError(status=418)) == "418"


class TestValidationError:
    def test_carries_errors_and_old(self) -> None:
        exc = ValidationError({"body": ["Too long"]}, {"body": "x" * 5})
        assert exc.errors == {"body": ["Too long"]}
        assert exc.old == {"body": "xxxxx"}
        assert "body" in str(exc)

    def test_old_defaults_to_empty(self) -> None:
        assert ValidationError({"email": ["Required"]}).old == {}

    def test_throw(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ValidationError.throw({"email": ["Unknown"]}, old={"email": "a@b.c"})
        assert exc_info.value.errors == {"email": ["Unknown"]}
        assert exc_info.value.old == {"email": "a@b.c"}


class TestAbort:
    def test_defaults_to_404(self) -> None:
        with pytest.raises(RouteNotFoundError):
            abort()

    def test_403(self) -> None:
        with pytest.raises(ForbiddenError, match="Forbidden"):
            abort(403)

    def test_other_status(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            abort(409, "Conflict")
        assert exc_info.value.status == 409
        assert exc_info.value.detail == "Conflict"


class TestAuthorize:
    def test_passes_when_true(self) -> None:
        assert authorize(True) is None

    def test_forbidden_when_false(self) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            authorize(False)
        assert exc_info.value.status == 403

    def test_custom_status(self) -> None:
        with pytest.raises(RouteNotFoundError):
            authorize(False, status=404)
