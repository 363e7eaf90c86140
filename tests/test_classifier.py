import json

from core.classifier import FailureClassifier
from core.outcome import Failure, FailureKind


def _classify(failure: Failure):
    return FailureClassifier().classify(failure)


def test_connection_refused_is_503():
    result = _classify(Failure(FailureKind.CONNECTION_REFUSED, "refused"))

    assert result.status_code == 503
    assert json.loads(result.body) == {
        "error": "Backend service unavailable",
        "message": "The backend service is currently unavailable. Please try again later.",
    }
    assert result.media_type == "application/json"


def test_timeout_is_504():
    result = _classify(Failure(FailureKind.TIMEOUT, "read timeout"))

    assert result.status_code == 504
    assert json.loads(result.body) == {
        "error": "Backend service timeout",
        "message": "The backend service did not respond in time. Please try again later.",
    }


def test_upstream_error_response_is_relayed_verbatim():
    result = _classify(
        Failure(
            FailureKind.UPSTREAM_ERROR_RESPONSE,
            "Client error '400 Bad Request'",
            status_code=400,
            body=b'{"error":"Invalid data"}',
            content_type="application/json",
        )
    )

    assert result.status_code == 400
    assert result.body == b'{"error":"Invalid data"}'


def test_unknown_is_bad_gateway():
    result = _classify(Failure(FailureKind.UNKNOWN, "Name or service not known"))

    assert result.status_code == 502
    assert json.loads(result.body) == {"error": "bad gateway"}


def test_transport_detail_never_reaches_the_body():
    result = _classify(Failure(FailureKind.UNKNOWN, "[Errno -2] secret-host.internal"))

    assert b"secret-host" not in result.body
