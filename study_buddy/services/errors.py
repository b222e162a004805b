"""Exception hierarchy translated into `{error, details}` responses by main.py."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NO_FILE_PROVIDED = "NoFileProvided"
    WRONG_MEDIA_TYPE = "WrongMediaType"
    TOO_LARGE = "TooLarge"
    BAD_SIGNATURE = "BadSignature"
    EXTRACTION_FAILED = "ExtractionFailed"
    NO_CONTENT_PROVIDED = "NoContentProvided"
    MODEL_CALL_FAILED = "ModelCallFailed"
    INVALID_OPTION = "InvalidOption"


class StudyBuddyError(Exception):
    kind: ErrorKind
    status_code: int = 400

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class UploadRejected(StudyBuddyError):
    """Raised by the upload validator. `kind` is one of the rejection reasons."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.status_code = 413 if kind == ErrorKind.TOO_LARGE else 400


class ExtractionFailed(StudyBuddyError):
    kind = ErrorKind.EXTRACTION_FAILED
    status_code = 422

    def __init__(
        self,
        details: str | None = None,
        message: str = "Failed to process PDF file. Please ensure it is a valid PDF.",
    ):
        super().__init__(message, details)


class NoContentProvided(StudyBuddyError):
    kind = ErrorKind.NO_CONTENT_PROVIDED
    status_code = 400

    def __init__(self, message: str = "No content provided"):
        super().__init__(message)


class ModelCallFailed(StudyBuddyError):
    kind = ErrorKind.MODEL_CALL_FAILED
    status_code = 502

    def __init__(self, message: str = "Failed to process content", details: str | None = None):
        super().__init__(message, details)


class InvalidOption(StudyBuddyError):
    """A request field holds a value outside its allowed set."""

    kind = ErrorKind.INVALID_OPTION
    status_code = 400
