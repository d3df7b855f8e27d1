"""
Submit capabilities

Opaque "send this payload" operations consumed by the submission state
machine. Whatever goes wrong inside one is reported as SubmissionFault.
"""

from typing import Awaitable, Callable, Optional, Protocol

import httpx

from portfolio_motion.errors import SubmissionFault
from portfolio_motion.models.config import EmailTransportConfig
from portfolio_motion.models.enums import LogCategory
from portfolio_motion.models.submission import FormPayload, SubmitAck
from portfolio_motion.utils.logger import get_logger

log = get_logger().for_category(LogCategory.TRANSPORT)


class SubmitCapability(Protocol):

    async def submit(self, payload: FormPayload) -> SubmitAck:
        """Send payload; raise SubmissionFault on any failure"""
        ...


class CallableSubmitCapability:
    """
    Adapts a coroutine function into a SubmitCapability

    Example:
        async def send(payload):
            await queue.put(payload)

        capability = CallableSubmitCapability(send)
    """

    def __init__(self, fn: Callable[[FormPayload], Awaitable[Optional[SubmitAck]]]):
        self.fn = fn

    async def submit(self, payload: FormPayload) -> SubmitAck:
        try:
            ack = await self.fn(payload)
        except SubmissionFault:
            raise
        except Exception as e:
            raise SubmissionFault(f"{type(e).__name__}: {e}", cause=e) from e
        return ack if isinstance(ack, SubmitAck) else SubmitAck()


class EmailJSSubmitCapability:
    """
    Sends form payloads through the EmailJS REST API

    The payload becomes the template parameters; credentials come from an
    explicit EmailTransportConfig.

    Example:
        config = EmailTransportConfig(service_id="svc", template_id="tpl", public_key="pk")
        capability = EmailJSSubmitCapability(config)
        await capability.submit({"name": "A", "email": "a@x.com", "message": "hi"})
        await capability.aclose()
    """

    def __init__(self, config: EmailTransportConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_s)
        return self._client

    def build_request_body(self, payload: FormPayload) -> dict:
        return {
            "service_id": self.config.service_id,
            "template_id": self.config.template_id,
            "user_id": self.config.public_key,
            "template_params": dict(payload),
        }

    async def submit(self, payload: FormPayload) -> SubmitAck:
        body = self.build_request_body(payload)
        log.debug("Posting to EmailJS", endpoint=self.config.endpoint, fields=sorted(payload))

        try:
            response = await self.client.post(self.config.endpoint, json=body)
        except httpx.HTTPError as e:
            log.warn("EmailJS transport error", error=str(e), error_type=type(e).__name__)
            raise SubmissionFault("EmailJS request failed", cause=e) from e

        if response.is_error:
            log.warn("EmailJS rejected the message", status=response.status_code, body=response.text[:200])
            raise SubmissionFault(f"EmailJS responded {response.status_code}: {response.text[:200]}")

        log.info("EmailJS accepted the message", status=response.status_code)
        return SubmitAck(status_code=response.status_code, detail=response.text)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
