"""Forwarding orchestration: translate, dispatch, respond."""

import time

from fastapi import Response

from core.classifier import FailureClassifier
from core.headers import HeaderBuilder
from core.outcome import Failure, Success
from core.protocols import RequestLogger
from core.request_types import InboundRequest
from core.translator import RequestTranslator
from services.upstream import UpstreamClient

ROUTE_NAME = "backend"


class ForwardingHandler:
    """Forward one inbound request to the backend and build the single response.

    The response object is built in full before it is handed back to the
    framework, so a failure can never follow a partial write. No retries.
    """

    def __init__(
        self,
        logger: RequestLogger,
        upstream: UpstreamClient,
        translator: RequestTranslator,
        classifier: FailureClassifier | None = None,
        header_builder: HeaderBuilder | None = None,
    ) -> None:
        self._logger = logger
        self._upstream = upstream
        self._translator = translator
        self._classifier = classifier or FailureClassifier()
        self._headers = header_builder or HeaderBuilder()

    async def forward(self, inbound: InboundRequest) -> Response:
        started = time.perf_counter()
        outbound = self._translator.translate(inbound)
        outcome = await self._upstream.send(outbound)

        if isinstance(outcome, Success):
            response = self._relay(outcome)
        else:
            response = self._fail(outcome)

        self._logger.log_forward(
            inbound.method,
            inbound.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            outbound=outbound,
        )
        return response

    def _relay(self, outcome: Success) -> Response:
        """Pass the upstream status and body through untouched."""
        return Response(
            content=outcome.body,
            status_code=outcome.status_code,
            headers=self._headers.build_response_headers(outcome.headers),
        )

    def _fail(self, outcome: Failure) -> Response:
        classified = self._classifier.classify(outcome)
        self._logger.log_error(
            ROUTE_NAME,
            classified.status_code,
            f"{outcome.kind.value}: {outcome.detail}",
        )
        return Response(
            content=classified.body,
            status_code=classified.status_code,
            media_type=classified.media_type,
        )
