import asyncio
import logging

import httpx

from gptstream.core.config import Settings
from gptstream.domain.exceptions import TransportError
from gptstream.domain.models import CompletionRequest
from gptstream.streaming.cancellation import CancellableContext

logger = logging.getLogger(__name__)


class RequestIssuer:
    """Sends one streamed completion request in the background.

    The returned task is the single-slot result channel: it completes once,
    with the response (body unread) or a TransportError, whether or not
    anybody awaits it. Status codes are passed through untouched.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self._client = client
        self._url = f"{settings.url_prefix}/chat/completions"
        self._api_key = settings.openai_api_key

    def build_request(self, request: CompletionRequest) -> httpx.Request:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        return self._client.build_request(
            "POST", self._url, json=request.to_payload(), headers=headers
        )

    def issue(self, request: CompletionRequest, context: CancellableContext) -> asyncio.Task:
        http_request = self.build_request(request)
        task = asyncio.create_task(
            self._send(http_request, context), name=f"{context.name}-request"
        )
        return context.attach(task)

    async def _send(
        self, http_request: httpx.Request, context: CancellableContext
    ) -> httpx.Response:
        try:
            response = await self._client.send(http_request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("Request to %s failed: %s", http_request.url, e)
            raise TransportError(
                f"Request failed: {e}",
                details={"url": str(http_request.url), "error_type": type(e).__name__},
            ) from e

        if context.cancelled:
            # Headers arrived after the caller gave up on them
            await response.aclose()
            raise asyncio.CancelledError()

        logger.info("Got response, status code = %d", response.status_code)
        return response
