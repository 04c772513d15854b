import logging
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import AuthenticationError, StorageFailure, UpstreamUnavailable

logger = logging.getLogger(__name__)


class AuthUser(BaseModel):
    id: str
    email: str | None = None


class SupabaseAuth:
    """Verifies bearer tokens against the Supabase Auth REST API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        service_key: str | None = None,
    ):
        self.http = http_client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.SUPABASE_SERVICE_ROLE_KEY

    async def verify(self, token: str) -> AuthUser:
        try:
            response = await self.http.get(
                f"{self.base_url}/auth/v1/user",
                headers={"apikey": self.service_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            logger.error("Failed to contact auth service: %s", exc)
            raise UpstreamUnavailable("Authentication service unavailable") from exc

        if response.status_code in (401, 403, 404):
            raise AuthenticationError("Invalid authentication")
        if response.is_error:
            logger.error("Auth service returned %s", response.status_code)
            raise UpstreamUnavailable("Authentication service unavailable")
        try:
            return AuthUser.model_validate(response.json())
        except ValueError as exc:
            raise AuthenticationError("Invalid authentication") from exc

    async def aclose(self) -> None:
        await self.http.aclose()


class SupabaseStorage:
    """Uploads blobs to Supabase Storage buckets and resolves their public URLs."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        service_key: str | None = None,
    ):
        self.http = http_client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.SUPABASE_SERVICE_ROLE_KEY

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{quote(path)}"

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        *,
        content_type: str = "image/jpeg",
    ) -> str:
        url = f"{self.base_url}/storage/v1/object/{bucket}/{quote(path)}"
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": content_type,
            "cache-control": "max-age=3600",
            "x-upsert": "false",
        }
        try:
            response = await self.http.post(url, headers=headers, content=content)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Storage upload to %s/%s returned %s", bucket, path, exc.response.status_code)
            raise StorageFailure() from exc
        except httpx.HTTPError as exc:
            logger.error("Failed to contact storage for %s/%s: %s", bucket, path, exc)
            raise StorageFailure() from exc
        return self.public_url(bucket, path)

    async def aclose(self) -> None:
        await self.http.aclose()
