"""Tests for inline image rehoming."""

import base64
import json

import httpx
import pytest

from docimport.core.contracts import Actor, Config
from docimport.core.errors import AttachmentError
from docimport.core.ids import generate_attachment_id
from docimport.ingestion.attachments import AttachmentRehoster, LocalAttachmentStore

PREFIX = "/api/attachments.redirect?id="
IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake image"


@pytest.fixture
def actor() -> Actor:
    return Actor(id="user-1", team_id="team-1", name="Ada")


@pytest.fixture
def store(tmp_path) -> LocalAttachmentStore:
    return LocalAttachmentStore(tmp_path / "attachments")


def data_uri(data: bytes, content_type: str = "image/png") -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.mark.asyncio
async def test_rehost_data_uri(store, actor):
    """Inline data images are stored and their links rewritten."""
    rehoster = AttachmentRehoster(store)
    text = f'Intro\n\n![diagram]({data_uri(IMAGE_BYTES)} "Figure 1")\n\nOutro'

    result = await rehoster.rehost(text, actor, ip="10.0.0.1")

    attachment_id = generate_attachment_id("team-1", "user-1", IMAGE_BYTES)
    assert result == f'Intro\n\n![diagram]({PREFIX}{attachment_id} "Figure 1")\n\nOutro'
    assert store.load("team-1", attachment_id) == IMAGE_BYTES

    meta_path = store.path_for("team-1", attachment_id).with_suffix(".json")
    meta = json.loads(meta_path.read_text())
    assert meta["content_type"] == "image/png"
    assert meta["actor_id"] == "user-1"
    assert meta["ip"] == "10.0.0.1"


@pytest.mark.asyncio
async def test_repeated_images_share_one_attachment(store, actor):
    """The same source appearing twice is stored once."""
    uri = data_uri(IMAGE_BYTES)
    result = await AttachmentRehoster(store).rehost(f"![a]({uri}) ![b]({uri})", actor)

    attachment_id = generate_attachment_id("team-1", "user-1", IMAGE_BYTES)
    assert result == f"![a]({PREFIX}{attachment_id}) ![b]({PREFIX}{attachment_id})"
    assert len(list((store.root / "team-1").iterdir())) == 2  # bytes + sidecar


@pytest.mark.asyncio
async def test_remote_images_untouched_by_default(store, actor):
    """Remote images are left alone unless fetching is enabled."""
    text = "![remote](https://example.com/a.png) ![local](images/b.png)"
    assert await AttachmentRehoster(store).rehost(text, actor) == text
    assert not store.root.exists()


@pytest.mark.asyncio
async def test_existing_attachment_links_untouched(store, actor):
    """Links that already point at attachments are not rehosted again."""
    text = f"![done]({PREFIX}abc123)"
    assert await AttachmentRehoster(store).rehost(text, actor) == text


@pytest.mark.asyncio
async def test_rehost_remote_image(store, actor):
    """Remote images are downloaded when fetching is enabled."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url == "https://example.com/a.png"
        return httpx.Response(200, content=IMAGE_BYTES, headers={"content-type": "image/png"})

    config = Config(fetch_remote_images=True)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        rehoster = AttachmentRehoster(store, config, client=client)
        result = await rehoster.rehost("![a](https://example.com/a.png)", actor)

    attachment_id = generate_attachment_id("team-1", "user-1", IMAGE_BYTES)
    assert result == f"![a]({PREFIX}{attachment_id})"
    meta = json.loads(store.path_for("team-1", attachment_id).with_suffix(".json").read_text())
    assert meta["source"] == "https://example.com/a.png"


@pytest.mark.asyncio
async def test_failed_download_raises(store, actor):
    """HTTP errors surface as AttachmentError."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    config = Config(fetch_remote_images=True)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        rehoster = AttachmentRehoster(store, config, client=client)
        with pytest.raises(AttachmentError):
            await rehoster.rehost("![a](https://example.com/missing.png)", actor)


@pytest.mark.asyncio
async def test_oversized_image_raises(store, actor):
    """Images over the size limit are rejected."""
    rehoster = AttachmentRehoster(store, Config(max_attachment_size=4))
    with pytest.raises(AttachmentError):
        await rehoster.rehost(f"![big]({data_uri(IMAGE_BYTES)})", actor)


@pytest.mark.asyncio
async def test_invalid_base64_raises(store, actor):
    """Malformed inline data is rejected."""
    with pytest.raises(AttachmentError):
        await AttachmentRehoster(store).rehost("![x](data:image/png;base64,@@@)", actor)
