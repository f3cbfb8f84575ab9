"""Custom exception hierarchy for better error handling."""
from fastapi import HTTPException, status


class BrightStepsException(Exception):
    """Base exception for all application errors."""
    pass


class SubjectNotFoundException(BrightStepsException):
    """Raised when a subject name does not map to a known subject."""

    def __init__(self, subject: str):
        self.subject = subject
        super().__init__(f"Subject {subject} not found")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject {self.subject} not found"
        )


class ChallengeNotFoundException(BrightStepsException):
    """Raised when an attempt references a challenge that does not exist."""

    def __init__(self, challenge_id: int):
        self.challenge_id = challenge_id
        super().__init__(f"Challenge {challenge_id} not found")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Challenge {self.challenge_id} not found"
        )


class ChallengeGenerationException(BrightStepsException):
    """Raised when the next challenge could not be written. Prior state is left intact."""

    def __init__(self, reason: str, original_error: Exception | None = None):
        self.reason = reason
        self.original_error = original_error
        super().__init__(f"Challenge generation failed: {reason}")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Couldn't create a new challenge, try again"
        )


class StorageException(BrightStepsException):
    """Raised when a database read or write fails. The transaction has been rolled back."""

    def __init__(self, operation: str, original_error: Exception):
        self.operation = operation
        self.original_error = original_error
        super().__init__(f"Database {operation} failed: {str(original_error)}")

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Couldn't save progress, try again"
        )
