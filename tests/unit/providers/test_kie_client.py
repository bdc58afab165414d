from __future__ import annotations

import httpx
import pytest
from pydantic import SecretStr

from photoforge.errors import AuthError, ProviderFailureError, RateLimitedError, UnsupportedOperationError
from photoforge.media.encoder import parse_data_uri
from photoforge.models import ImmediateArtifact, JobPhase, PendingJob
from photoforge.providers.providers_kie import KieClient
from photoforge.translators.base import MultiImageRequest, ParameterRequest, SingleImageRequest

from tests.mocks.http import PNG_DATA_URI, DummyHTTPResponse

pytestmark = pytest.mark.unit

BASE = "https://api.kie.ai/api/v1"
REQUEST = SingleImageRequest(prompt="Put me in a Monet painting", image_refs=("a",))


@pytest.fixture
def client() -> KieClient:
    return KieClient(api_key=SecretStr("kie-secret"))


@pytest.fixture
def image():
    return parse_data_uri(PNG_DATA_URI)


def task_created(task_id: str = "task-1") -> DummyHTTPResponse:
    return DummyHTTPResponse(200, {"code": 200, "msg": "success", "data": {"taskId": task_id}})


@pytest.mark.asyncio
async def test_submit_uploads_then_creates_task(client, http, image) -> None:
    http.post_queue.extend(
        [
            DummyHTTPResponse(200, {"url": "https://files.kie.ai/u/1.png"}),
            task_created(),
        ]
    )

    submission = await client.submit(REQUEST, [image])

    assert submission == PendingJob(job_id="task-1")
    assert http.urls("POST") == [f"{BASE}/upload", f"{BASE}/jobs/createTask"]
    upload, create = http.payloads("POST")
    assert upload["json"] == {"file": PNG_DATA_URI}
    assert create["headers"]["Authorization"] == "Bearer kie-secret"
    assert create["json"] == {
        "model": "google/nano-banana-edit",
        "input": {
            "prompt": "Put me in a Monet painting",
            "image_urls": ["https://files.kie.ai/u/1.png"],
            "output_format": "jpeg",
            "image_size": "auto",
        },
    }


@pytest.mark.asyncio
async def test_upload_falls_through_to_next_path(client, http, image) -> None:
    http.post_queue.extend(
        [
            DummyHTTPResponse(404, text="not found"),
            DummyHTTPResponse(200, {"data": {"url": "https://files.kie.ai/u/2.png"}}),
            httpx.ConnectError("refused"),
            DummyHTTPResponse(200, {"image_url": "https://files.kie.ai/u/3.png"}),
            task_created(),
        ]
    )
    request = MultiImageRequest(prompt="Wear the jacket", image_refs=("a", "b"))

    await client.submit(request, [image, image])

    assert http.urls("POST")[:4] == [
        f"{BASE}/upload",
        f"{BASE}/uploads",
        f"{BASE}/upload",
        f"{BASE}/uploads",
    ]
    create = http.payloads("POST")[-1]["json"]
    assert create["input"]["image_urls"] == [
        "https://files.kie.ai/u/2.png",
        "https://files.kie.ai/u/3.png",
    ]


@pytest.mark.asyncio
async def test_upload_failure_inlines_data_uri(client, http, image) -> None:
    http.post_queue.extend(
        [
            DummyHTTPResponse(500, text="boom"),
            DummyHTTPResponse(200, {"url": PNG_DATA_URI}),
            DummyHTTPResponse(200, text="<html>"),
            task_created(),
        ]
    )

    await client.submit(REQUEST, [image])

    assert len(http.urls("POST")) == 4
    assert http.payloads("POST")[-1]["json"]["input"]["image_urls"] == [PNG_DATA_URI]


@pytest.mark.asyncio
async def test_upload_rejected_credential_is_auth_error(client, http, image) -> None:
    http.post_queue.append(DummyHTTPResponse(401, {"msg": "invalid key"}))

    with pytest.raises(AuthError, match="invalid key"):
        await client.submit(REQUEST, [image])

    assert len(http.calls) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("code", "error"),
    [(401, AuthError), (429, RateLimitedError), (500, ProviderFailureError), (422, ProviderFailureError)],
)
async def test_create_task_body_code_is_checked(client, http, image, code, error) -> None:
    http.post_queue.extend(
        [
            DummyHTTPResponse(200, {"url": "https://files.kie.ai/u/1.png"}),
            DummyHTTPResponse(200, {"code": code, "msg": "Server exception"}),
        ]
    )

    with pytest.raises(error, match="Server exception"):
        await client.submit(REQUEST, [image])


@pytest.mark.asyncio
async def test_create_task_immediate_output(client, http, image) -> None:
    http.post_queue.extend(
        [
            DummyHTTPResponse(200, {"url": "https://files.kie.ai/u/1.png"}),
            DummyHTTPResponse(200, {"code": 200, "data": {"output": "https://files.kie.ai/r/out.jpg"}}),
        ]
    )

    submission = await client.submit(REQUEST, [image])

    assert isinstance(submission, ImmediateArtifact)
    assert submission.artifact.output == "https://files.kie.ai/r/out.jpg"
    assert submission.artifact.provider == "kie"


@pytest.mark.asyncio
async def test_create_task_without_id_is_provider_failure(client, http, image) -> None:
    http.post_queue.extend(
        [
            DummyHTTPResponse(200, {"url": "https://files.kie.ai/u/1.png"}),
            DummyHTTPResponse(200, {"code": 200, "msg": "queued"}),
        ]
    )

    with pytest.raises(ProviderFailureError, match="job id"):
        await client.submit(REQUEST, [image])


@pytest.mark.asyncio
async def test_parameter_requests_are_unsupported(client, http, image) -> None:
    with pytest.raises(UnsupportedOperationError):
        await client.submit(ParameterRequest(model="cjwbw/rembg", image_field="image"), [image])

    assert http.calls == []


@pytest.mark.asyncio
async def test_missing_key_fails_before_network(http, image) -> None:
    with pytest.raises(AuthError):
        await KieClient(api_key=SecretStr("  ")).submit(REQUEST, [image])

    assert http.calls == []


@pytest.mark.asyncio
async def test_fetch_status_success_reads_result_url(client, http) -> None:
    http.get_queue.append(
        DummyHTTPResponse(200, {"status": "Completed", "result": {"url": "https://files.kie.ai/r/1.jpg"}})
    )

    status = await client.fetch_status("task-1")

    assert http.urls("GET") == [f"{BASE}/jobs/task-1"]
    assert status.state == "completed"
    assert status.phase is JobPhase.SUCCEEDED
    assert status.output == "https://files.kie.ai/r/1.jpg"
    assert client.has_usable_output(status)


@pytest.mark.asyncio
async def test_fetch_status_reads_nested_state_and_failure(client, http) -> None:
    http.get_queue.append(
        DummyHTTPResponse(200, {"code": 200, "data": {"state": "fail", "failMsg": "nope"}})
    )
    http.get_queue.append(
        DummyHTTPResponse(200, {"code": 200, "data": {"status": "failed", "failMsg": "content policy"}})
    )

    unknown = await client.fetch_status("task-1")
    failed = await client.fetch_status("task-1")

    assert unknown.phase is JobPhase.PENDING
    assert not client.is_terminal(unknown)
    assert failed.phase is JobPhase.FAILED
    assert failed.error == "content policy"


@pytest.mark.asyncio
async def test_fetch_status_failure_without_message(client, http) -> None:
    http.get_queue.append(DummyHTTPResponse(200, {"status": "error"}))

    status = await client.fetch_status("task-9")

    assert status.phase is JobPhase.FAILED
    assert "task-9" in status.error


@pytest.mark.asyncio
async def test_fetch_status_rate_limited(client, http) -> None:
    http.get_queue.append(DummyHTTPResponse(429, {"msg": "too many requests"}))

    with pytest.raises(RateLimitedError):
        await client.fetch_status("task-1")
