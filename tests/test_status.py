from __future__ import annotations

from http import HTTPStatus

import pytest

from webglue.domain.status import UnknownStatusError, status_code


@pytest.mark.parametrize("code", [100, 200, 204, 302, 404, 422, 500, 599])
def test_numeric_status_is_returned_unchanged(code):
    assert status_code(code) == code


@pytest.mark.parametrize(
    "name, expected",
    [
        ("ok", 200),
        ("not_found", 404),
        ("NOT_FOUND", 404),
        ("NotFound", 404),
        ("not-found", 404),
        ("unprocessable_entity", 422),
        ("internal_server_error", 500),
        ("404", 404),
        (HTTPStatus.CREATED, 201),
    ],
)
def test_symbolic_status_resolves_to_standard_code(name, expected):
    assert status_code(name) == expected


@pytest.mark.parametrize("bad", ["teapot_of_doom", "", True, None, 4.04])
def test_unknown_status_raises(bad):
    with pytest.raises(UnknownStatusError) as exc_info:
        status_code(bad)
    assert exc_info.value.code == "unknown_status"
    assert isinstance(exc_info.value, ValueError)
