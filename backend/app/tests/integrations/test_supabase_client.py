import httpx
import pytest

from app.core.errors import AuthenticationError, StorageFailure, UpstreamUnavailable
from app.integrations.supabase import SupabaseAuth, SupabaseStorage

BASE_URL = "https://project.supabase.test"


def _http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_verify_returns_user_for_valid_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "user-1", "email": "wanjiku@example.com", "role": "authenticated"})

    auth = SupabaseAuth(http_client=_http(handler), base_url=BASE_URL + "/", service_key="service-key")
    user = await auth.verify("jwt-token")
    await auth.aclose()

    assert user.id == "user-1"
    assert user.email == "wanjiku@example.com"
    assert str(seen[0].url) == f"{BASE_URL}/auth/v1/user"
    assert seen[0].headers["Authorization"] == "Bearer jwt-token"
    assert seen[0].headers["apikey"] == "service-key"


@pytest.mark.asyncio
async def test_verify_rejects_invalid_token():
    auth = SupabaseAuth(
        http_client=_http(lambda request: httpx.Response(401, json={"msg": "invalid JWT"})),
        base_url=BASE_URL,
        service_key="service-key",
    )
    with pytest.raises(AuthenticationError):
        await auth.verify("expired")
    await auth.aclose()


@pytest.mark.asyncio
async def test_verify_outage_is_upstream_unavailable():
    auth = SupabaseAuth(
        http_client=_http(lambda request: httpx.Response(503)),
        base_url=BASE_URL,
        service_key="service-key",
    )
    with pytest.raises(UpstreamUnavailable):
        await auth.verify("jwt-token")
    await auth.aclose()


@pytest.mark.asyncio
async def test_upload_posts_bytes_and_returns_public_url():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"Key": "quality-checks/1_user-1_quality_check.jpg"})

    storage = SupabaseStorage(http_client=_http(handler), base_url=BASE_URL, service_key="service-key")
    url = await storage.upload("quality-checks", "1_user-1_quality_check.jpg", b"jpeg", content_type="image/png")
    await storage.aclose()

    assert url == f"{BASE_URL}/storage/v1/object/public/quality-checks/1_user-1_quality_check.jpg"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == f"{BASE_URL}/storage/v1/object/quality-checks/1_user-1_quality_check.jpg"
    assert request.headers["Content-Type"] == "image/png"
    assert request.content == b"jpeg"


@pytest.mark.asyncio
async def test_upload_failure_raises_storage_failure():
    storage = SupabaseStorage(
        http_client=_http(lambda request: httpx.Response(400, json={"error": "Duplicate"})),
        base_url=BASE_URL,
        service_key="service-key",
    )
    with pytest.raises(StorageFailure) as excinfo:
        await storage.upload("listings", "1_user-1_listing.jpg", b"jpeg")
    await storage.aclose()

    assert excinfo.value.message == "Failed to upload image"
