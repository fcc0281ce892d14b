"""Unit tests for custom exception classes.

Tests the exception hierarchy, default error codes, message handling,
and details propagation for all custom exceptions in the WBS engine.
"""

import pytest

from wbs_core.exceptions import (
    WBSCoreError,
    NotFoundError,
    CycleDetectedError,
    DepthExceededError,
    InvalidStatusError,
    ProjectMismatchError,
    DuplicateItemError,
)


class TestWBSCoreError:
    def test_base_error_attributes(self):
        err = WBSCoreError("Something failed", error_code="ERR_TEST", details={"key": "value"})
        assert err.message == "Something failed"
        assert err.error_code == "ERR_TEST"
        assert err.details == {"key": "value"}
        assert str(err) == "Something failed"

    def test_base_error_defaults(self):
        err = WBSCoreError("Minimal error")
        assert err.error_code == "ERR_UNKNOWN"
        assert err.details is None

    def test_is_exception_subclass(self):
        assert isinstance(WBSCoreError("test"), Exception)


class TestSubclassErrorCodes:
    """Each subclass must carry its own default error_code."""

    @pytest.mark.parametrize(
        "exc_cls,code",
        [
            (NotFoundError, "ERR_NOTFOUND_001"),
            (CycleDetectedError, "ERR_CYCLE_001"),
            (DepthExceededError, "ERR_DEPTH_001"),
            (InvalidStatusError, "ERR_STATUS_001"),
            (ProjectMismatchError, "ERR_PROJECT_001"),
            (DuplicateItemError, "ERR_DUPLICATE_001"),
        ],
    )
    def test_error_code(self, exc_cls, code):
        err = exc_cls("msg")
        assert err.error_code == code
        assert err.message == "msg"
        assert isinstance(err, WBSCoreError)

    def test_details_are_kept(self):
        details = {"item_id": "a", "new_parent_id": "b"}
        err = CycleDetectedError("cycle", details=details)
        assert err.details["item_id"] == "a"
        assert err.details["new_parent_id"] == "b"


class TestExceptionHierarchy:
    """All custom exceptions must be catchable as WBSCoreError."""

    @pytest.mark.parametrize(
        "exc_cls",
        [NotFoundError, CycleDetectedError, DepthExceededError, InvalidStatusError, ProjectMismatchError,
         DuplicateItemError],
    )
    def test_catchable_as_base(self, exc_cls):
        with pytest.raises(WBSCoreError):
            raise exc_cls("msg")
