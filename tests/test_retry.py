"""
Tests for the transient-error retry decorator.
"""

from types import SimpleNamespace

import pytest
import requests
from gspread.exceptions import APIError

from retry import is_transient, status_of, with_retry


class FakeAPIError(APIError):
    """APIError carrying only an HTTP status."""

    def __init__(self, status_code):
        Exception.__init__(self, f"HTTP {status_code}")
        self.response = SimpleNamespace(status_code=status_code)
        self.code = status_code
        self.error = {"code": status_code, "message": f"HTTP {status_code}", "status": "ERROR"}


class Flaky:
    """Callable failing with the given errors before succeeding."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


@pytest.fixture
def sleeps():
    return []


class TestIsTransient:

    @pytest.mark.parametrize("exc", [
        FakeAPIError(429),
        FakeAPIError(503),
        FakeAPIError(408),
        requests.ConnectionError("reset"),
        requests.Timeout("slow"),
    ])
    def test_transient(self, exc):
        assert is_transient(exc)

    @pytest.mark.parametrize("exc", [
        FakeAPIError(400),
        FakeAPIError(404),
        ValueError("bad"),
        KeyError("x"),
    ])
    def test_not_transient(self, exc):
        assert not is_transient(exc)

    def test_status_of(self):
        assert status_of(FakeAPIError(429)) == 429
        assert status_of(ValueError()) is None


class TestWithRetry:

    def test_success_first_try(self, sleeps):
        fn = Flaky()
        assert with_retry("load", sleep=sleeps.append)(fn)() == "ok"
        assert fn.calls == 1
        assert sleeps == []

    def test_retries_with_linear_backoff(self, sleeps):
        fn = Flaky(FakeAPIError(429), requests.ConnectionError("reset"))
        assert with_retry("load", sleep=sleeps.append)(fn)() == "ok"
        assert fn.calls == 3
        assert sleeps == pytest.approx([0.3, 0.6])

    def test_gives_up_after_attempts(self, sleeps):
        errors = [FakeAPIError(503) for _ in range(3)]
        fn = Flaky(*errors)
        with pytest.raises(APIError) as exc_info:
            with_retry("load", sleep=sleeps.append)(fn)()
        assert exc_info.value is errors[-1]
        assert fn.calls == 3
        assert len(sleeps) == 2

    def test_non_transient_raises_immediately(self, sleeps):
        fn = Flaky(FakeAPIError(403))
        with pytest.raises(APIError):
            with_retry("load", sleep=sleeps.append)(fn)()
        assert fn.calls == 1
        assert sleeps == []

    def test_custom_attempts_and_delay(self, sleeps):
        fn = Flaky(requests.Timeout(), requests.Timeout(), requests.Timeout())
        assert with_retry("load", attempts=4, delay=1.0, sleep=sleeps.append)(fn)() == "ok"
        assert sleeps == [1.0, 2.0, 3.0]

    def test_passes_arguments_through(self):
        @with_retry("add")
        def add(a, b=0):
            return a + b

        assert add(2, b=3) == 5
        assert add.__name__ == "add"
