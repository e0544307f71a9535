"""HTTP client for the internal database service that mirrors checkouts."""

import httpx

from paybridge.common.config import settings
from paybridge.common.logging import trace_id_ctx
from paybridge.services.checkout.schemas import MirrorRecord


class MirrorClient:
    """Register and delete mirror records.

    Status codes are returned to the caller untouched; transport failures
    surface as `httpx.HTTPError`.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"x-trace-id": trace_id_ctx.get()},
        )

    async def register(self, record: MirrorRecord) -> httpx.Response:
        async with self._client() as client:
            return await client.post("/api/subscriptions", json=record.model_dump(by_alias=True))

    async def delete(self, stripe_session_id: str) -> httpx.Response:
        async with self._client() as client:
            return await client.delete(f"/api/subscriptions/{stripe_session_id}")


def build_mirror() -> MirrorClient | None:
    """Mirror client wired from process settings, or None when mirroring is off."""

    if not settings.mirror_enabled:
        return None
    return MirrorClient(settings.database_service_url, timeout=settings.mirror_timeout_seconds)
