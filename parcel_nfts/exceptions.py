"""
Custom Exception Classes

This module defines the exceptions raised by the minting workflows. Validation
problems are collected into a single aggregate error; failures of external
collaborators are wrapped with a message naming the step that failed.
"""

from typing import List, Optional, Union


class ParcelNftsError(Exception):
    """Base exception for the parcel_nfts package."""

    pass


class ValidationErrors(ParcelNftsError):
    """Raised with every problem found while validating workflow inputs."""

    def __init__(self, validation_errors: List[str]):
        self.validation_errors = list(validation_errors)
        super().__init__("\n".join(self.validation_errors))

    def appending(self, error_or_errors: Union[str, List[str]]) -> "ValidationErrors":
        if isinstance(error_or_errors, str):
            error_or_errors = [error_or_errors]
        return ValidationErrors([*self.validation_errors, *error_or_errors])

    def __len__(self) -> int:
        return len(self.validation_errors)


class StepFailure(ParcelNftsError):
    """Raised when an external call made during a named workflow step fails."""

    def __init__(self, message: str, source: Optional[BaseException] = None):
        self.message = message
        self.source = source
        if source is None:
            super().__init__(message)
        else:
            super().__init__(f"{message}: {source}")


class WorkflowStateError(ParcelNftsError):
    """Raised when an orchestrator operation is called out of order."""

    pass


class TransactionFailed(ParcelNftsError):
    """Raised when a mined transaction reports a non-success status."""

    def __init__(self, tx_hash: str, status: Optional[int] = None):
        self.tx_hash = tx_hash
        self.status = status
        super().__init__(f"transaction {tx_hash} failed (status {status})")


class BridgeTimeout(ParcelNftsError):
    """Raised when a bridged token is not observed before polling gives up."""

    pass


class EscrowApiError(ParcelNftsError):
    """Raised by token escrow service implementations for API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
