"""Tests for the exception classes."""

import pytest

from parcel_nfts.exceptions import (
    BridgeTimeout,
    EscrowApiError,
    ParcelNftsError,
    StepFailure,
    TransactionFailed,
    ValidationErrors,
    WorkflowStateError,
)


@pytest.mark.unit
class TestValidationErrors:

    def test_message_lists_every_error(self):
        errors = ValidationErrors(["Missing: a.png.", "Duplicated: b.png."])
        assert str(errors) == "Missing: a.png.\nDuplicated: b.png."
        assert len(errors) == 2

    def test_appending_returns_new_aggregate(self):
        errors = ValidationErrors(["one"])
        more = errors.appending("two").appending(["three", "four"])

        assert errors.validation_errors == ["one"]
        assert more.validation_errors == ["one", "two", "three", "four"]

    def test_list_is_copied(self):
        source = ["one"]
        errors = ValidationErrors(source)
        source.append("two")
        assert errors.validation_errors == ["one"]


@pytest.mark.unit
def test_step_failure_without_source():
    failure = StepFailure("failed to premint tokens")
    assert str(failure) == "failed to premint tokens"
    assert failure.source is None


@pytest.mark.unit
def test_escrow_api_error_keeps_status():
    assert EscrowApiError("not found", status_code=404).status_code == 404
    assert EscrowApiError("offline").status_code is None


@pytest.mark.unit
@pytest.mark.parametrize(
    "error",
    [
        ValidationErrors([]),
        StepFailure("x"),
        WorkflowStateError("x"),
        TransactionFailed("0x1", 0),
        BridgeTimeout("x"),
        EscrowApiError("x"),
    ],
)
def test_all_errors_share_a_base(error):
    assert isinstance(error, ParcelNftsError)
