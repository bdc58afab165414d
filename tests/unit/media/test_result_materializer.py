from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from photoforge.errors import DownloadFailureError
from photoforge.media.materializer import ResultMaterializer, resolve_artifact_url
from photoforge.models import Artifact, LocalArtifact

from tests.mocks.http import PNG_BYTES, PNG_DATA_URI, DummyHTTPResponse

pytestmark = pytest.mark.unit


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    return tmp_path / "results"


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def materializer(results_dir: Path, cache_dir: Path) -> ResultMaterializer:
    return ResultMaterializer(results_dir=results_dir, cache_dir=cache_dir, timeout_seconds=2)


class HangingPrimaryMaterializer(ResultMaterializer):
    """First stream never finishes; later ones write the payload."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.targets: list[Path] = []

    async def _stream_to(self, url: str, target: Path) -> str:
        self.targets.append(target)
        if len(self.targets) == 1:
            target.write_bytes(b"partial")
            await asyncio.sleep(30)
        target.write_bytes(b"complete")
        return "image/png"


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("https://cdn.example.com/a.png", "https://cdn.example.com/a.png"),
        (["https://cdn.example.com/1.png", "https://cdn.example.com/2.png"], "https://cdn.example.com/2.png"),
        ({"url": "https://cdn.example.com/u.png"}, "https://cdn.example.com/u.png"),
        ({"image_url": "https://cdn.example.com/i.png"}, "https://cdn.example.com/i.png"),
        ({"output": ["https://cdn.example.com/nested.png"]}, "https://cdn.example.com/nested.png"),
        (PNG_DATA_URI, PNG_DATA_URI),
    ],
)
def test_resolve_artifact_url_shapes(output, expected) -> None:
    assert resolve_artifact_url(output) == expected


@pytest.mark.parametrize("output", [[], {}, {"status": "ok"}, None, 42, "ftp://example.com/x.png", "   "])
def test_resolve_artifact_url_rejects_unusable_output(output) -> None:
    with pytest.raises(DownloadFailureError):
        resolve_artifact_url(output)


@pytest.mark.asyncio
async def test_materialize_downloads_to_results_dir(materializer, http, results_dir, cache_dir) -> None:
    http.stream_queue.append(DummyHTTPResponse(200, content=PNG_BYTES, headers={"Content-Type": "image/png"}))

    local = await materializer.materialize(
        Artifact(output="https://cdn.example.com/out.png"), stem="upscale"
    )

    assert local.path.parent == results_dir
    assert local.path.name.startswith("upscale_")
    assert local.path.suffix == ".png"
    assert local.path.read_bytes() == PNG_BYTES
    assert local.size_bytes == len(PNG_BYTES)
    assert local.content_type == "image/png"
    assert not cache_dir.exists()


@pytest.mark.asyncio
async def test_materialize_list_output_uses_last_element(materializer, http) -> None:
    http.stream_queue.append(DummyHTTPResponse(200, content=b"final"))

    local = await materializer.materialize(
        Artifact(output=["https://cdn.example.com/draft.jpg", "https://cdn.example.com/final.jpg"])
    )

    assert http.urls("STREAM") == ["https://cdn.example.com/final.jpg"]
    assert local.path.read_bytes() == b"final"
    assert local.path.suffix == ".jpg"


@pytest.mark.asyncio
async def test_materialize_inline_data_uri_without_network(materializer, http) -> None:
    local = await materializer.materialize(Artifact(output=PNG_DATA_URI))

    assert http.calls == []
    assert local.path.read_bytes() == PNG_BYTES
    assert local.path.suffix == ".png"


@pytest.mark.asyncio
async def test_materialize_falls_back_to_temp_copy(materializer, http, results_dir, cache_dir) -> None:
    http.stream_queue.extend(
        [
            DummyHTTPResponse(502),
            DummyHTTPResponse(200, content=b"second-tier"),
        ]
    )

    local = await materializer.materialize(Artifact(output="https://cdn.example.com/out.png"))

    assert local.path.read_bytes() == b"second-tier"
    assert len(http.urls("STREAM")) == 2
    assert [p.name for p in results_dir.iterdir()] == [local.path.name]
    assert list(cache_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_materialize_both_tiers_failing(materializer, http, results_dir, cache_dir) -> None:
    http.stream_queue.extend([DummyHTTPResponse(500), DummyHTTPResponse(500)])

    with pytest.raises(DownloadFailureError) as excinfo:
        await materializer.materialize(Artifact(output="https://cdn.example.com/out.png"))

    assert excinfo.value.__cause__ is not None
    assert list(results_dir.iterdir()) == []
    assert list(cache_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_materialize_empty_primary_body_uses_secondary(materializer, http, results_dir, cache_dir) -> None:
    http.stream_queue.extend(
        [
            DummyHTTPResponse(200, content=b""),
            DummyHTTPResponse(200, content=PNG_BYTES),
        ]
    )

    local = await materializer.materialize(Artifact(output="https://cdn.example.com/out.png"))

    assert len(http.urls("STREAM")) == 2
    assert local.size_bytes == len(PNG_BYTES)
    assert local.path.read_bytes() == PNG_BYTES
    assert [p.name for p in results_dir.iterdir()] == [local.path.name]
    assert list(cache_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_materialize_empty_body_on_both_tiers_fails(materializer, http, results_dir, cache_dir) -> None:
    http.stream_queue.extend([DummyHTTPResponse(200, content=b""), DummyHTTPResponse(200, content=b"")])

    with pytest.raises(DownloadFailureError, match="empty"):
        await materializer.materialize(Artifact(output="https://cdn.example.com/out.png"))

    assert list(results_dir.iterdir()) == []
    assert list(cache_dir.iterdir()) == []


def test_verify_removes_zero_byte_file(materializer, results_dir) -> None:
    results_dir.mkdir(parents=True)
    empty = results_dir / "empty.png"
    empty.write_bytes(b"")
    stored = results_dir / "stored.png"
    stored.write_bytes(PNG_BYTES)

    with pytest.raises(DownloadFailureError, match="empty"):
        materializer._verify(empty)

    assert not empty.exists()
    assert materializer._verify(stored) == LocalArtifact(
        path=stored, content_type="image/png", size_bytes=len(PNG_BYTES)
    )


@pytest.mark.asyncio
async def test_materialize_rejects_empty_inline_payload(materializer, results_dir) -> None:
    with pytest.raises(DownloadFailureError):
        await materializer.materialize(Artifact(output="data:image/png;base64,"))

    assert list(results_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_materialize_hanging_primary_uses_secondary(results_dir, cache_dir) -> None:
    materializer = HangingPrimaryMaterializer(
        results_dir=results_dir, cache_dir=cache_dir, timeout_seconds=0.05
    )

    local = await materializer.materialize(Artifact(output="https://cdn.example.com/slow.png"))

    primary_target, secondary_target = materializer.targets
    assert primary_target == local.path
    assert secondary_target.parent == cache_dir
    assert not secondary_target.exists()
    assert local.path.read_bytes() == b"complete"


@pytest.mark.asyncio
async def test_materialize_rejects_invalid_inline_payload(materializer) -> None:
    with pytest.raises(DownloadFailureError):
        await materializer.materialize(Artifact(output="data:image/png;base64,@@@"))
