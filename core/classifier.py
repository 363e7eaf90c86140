"""Map upstream failures to caller-facing responses."""

import json
from dataclasses import dataclass

from core.outcome import Failure, FailureKind

JSON_MEDIA_TYPE = "application/json"

BACKEND_UNAVAILABLE = {
    "error": "Backend service unavailable",
    "message": "The backend service is currently unavailable. Please try again later.",
}
BACKEND_TIMEOUT = {
    "error": "Backend service timeout",
    "message": "The backend service did not respond in time. Please try again later.",
}
BAD_GATEWAY = {"error": "bad gateway"}


@dataclass(frozen=True)
class ClassifiedFailure:
    """Status, body and media type to send for a failed upstream call."""

    status_code: int
    body: bytes
    media_type: str | None = JSON_MEDIA_TYPE


class FailureClassifier:
    """Translate a Failure outcome into the response the caller receives.

    503 means the backend is down, 504 means it is slow, a relayed upstream
    error keeps the upstream status and body, anything else is a 502.
    """

    def classify(self, failure: Failure) -> ClassifiedFailure:
        if failure.kind is FailureKind.CONNECTION_REFUSED:
            return ClassifiedFailure(503, _dump(BACKEND_UNAVAILABLE))
        if failure.kind is FailureKind.TIMEOUT:
            return ClassifiedFailure(504, _dump(BACKEND_TIMEOUT))
        if failure.kind is FailureKind.UPSTREAM_ERROR_RESPONSE and failure.status_code is not None:
            return ClassifiedFailure(
                failure.status_code,
                failure.body or b"",
                failure.content_type,
            )
        return ClassifiedFailure(502, _dump(BAD_GATEWAY))


def _dump(payload: dict[str, str]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode()
