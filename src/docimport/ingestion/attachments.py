"""
Attachment rehoming for docimport.

Inline markdown images are stored as managed attachments and their links are
rewritten to point at the attachment.
"""

import asyncio
import base64
import binascii
import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import xxhash

from docimport.core.contracts import Actor, Config, StoredAttachment
from docimport.core.errors import AttachmentError
from docimport.core.ids import attachment_key, generate_attachment_id

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(
    r'!\[(?P<alt>[^\]]*)\]\(\s*(?P<src>[^)\s]+)(?:\s+"(?P<title>[^"]*)")?\s*\)'
)
DATA_URI_PATTERN = re.compile(
    r"^data:(?P<type>[\w.+-]+/[\w.+-]+)(?:;[\w=.-]+)*;base64,(?P<data>.+)$",
    re.DOTALL,
)


class AttachmentStore(ABC):
    """Persists attachment bytes and metadata."""

    @abstractmethod
    def save(
        self, attachment: StoredAttachment, data: bytes, ip: Optional[str] = None,
        transaction: Any = None,
    ) -> None:
        """
        Persist an attachment.

        Args:
            attachment: Attachment metadata (id, owner, type, checksum)
            data: Raw bytes
            ip: Address the import originated from
            transaction: Opaque persistence scope passed through from the request
        """


class LocalAttachmentStore(AttachmentStore):
    """
    Filesystem attachment store.

    Layout:
    - <root>/<team_id>/<id>: raw attachment bytes
    - <root>/<team_id>/<id>.json: metadata sidecar
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, team_id: str, attachment_id: str) -> Path:
        return self.root / attachment_key(team_id, attachment_id)

    def save(
        self, attachment: StoredAttachment, data: bytes, ip: Optional[str] = None,
        transaction: Any = None,
    ) -> None:
        path = self.path_for(attachment.team_id, attachment.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        meta = {
            "id": attachment.id,
            "team_id": attachment.team_id,
            "actor_id": attachment.actor_id,
            "content_type": attachment.content_type,
            "size": attachment.size,
            "checksum": attachment.checksum,
            "source": attachment.source,
            "ip": ip,
        }
        with open(path.with_suffix(".json"), "w") as f:
            json.dump(meta, f, indent=2)

    def load(self, team_id: str, attachment_id: str) -> bytes:
        """Read attachment bytes, validating the stored checksum."""
        path = self.path_for(team_id, attachment_id)
        with open(path.with_suffix(".json"), "r") as f:
            meta = json.load(f)
        data = path.read_bytes()
        if xxhash.xxh32(data).intdigest() != meta["checksum"]:
            raise AttachmentError(f"Checksum mismatch for attachment {attachment_id}")
        return data


class AttachmentRehoster:
    """Replaces inline images in markdown with managed attachment links."""

    def __init__(
        self,
        store: AttachmentStore,
        config: Optional[Config] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize rehoster.

        Args:
            store: Where attachment bytes are written
            config: Configuration (size limit, timeout, link prefix)
            client: HTTP client for remote images; one is created per call
                when omitted and remote fetching is enabled
        """
        self.store = store
        self.config = config or Config()
        self.client = client

    async def rehost(
        self, text: str, actor: Actor, ip: Optional[str] = None, transaction: Any = None
    ) -> str:
        """
        Store inline images and rewrite their links.

        Images are processed in document order. Repeated sources are stored
        once. Sources that are already attachment links, or remote urls when
        remote fetching is disabled, are left as they are.

        Args:
            text: Normalized markdown
            actor: Importing user (owner of the attachments)
            ip: Address the import originated from
            transaction: Opaque persistence scope forwarded to the store

        Returns:
            Markdown with rewritten image links
        """
        matches = [m for m in IMAGE_PATTERN.finditer(text) if self._should_rehost(m.group("src"))]
        if not matches:
            return text

        if self.client is not None or not self.config.fetch_remote_images:
            return await self._rewrite(text, matches, actor, ip, transaction, self.client)

        async with httpx.AsyncClient(timeout=self.config.attachment_timeout) as client:
            return await self._rewrite(text, matches, actor, ip, transaction, client)

    def _should_rehost(self, src: str) -> bool:
        if src.startswith(self.config.attachment_url_prefix):
            return False
        if src.startswith("data:"):
            return True
        if src.startswith(("http://", "https://")):
            return self.config.fetch_remote_images
        return False

    async def _rewrite(self, text, matches, actor, ip, transaction, client) -> str:
        rehosted: Dict[str, str] = {}
        parts = []
        last = 0

        for match in matches:
            src = match.group("src")
            if src not in rehosted:
                attachment_id = await self._rehost_source(src, actor, ip, transaction, client)
                rehosted[src] = f"{self.config.attachment_url_prefix}{attachment_id}"

            title = match.group("title")
            link = f'{rehosted[src]} "{title}"' if title is not None else rehosted[src]
            parts.append(text[last:match.start()])
            parts.append(f"![{match.group('alt')}]({link})")
            last = match.end()

        parts.append(text[last:])
        return "".join(parts)

    async def _rehost_source(self, src, actor, ip, transaction, client) -> str:
        if src.startswith("data:"):
            content_type, data = decode_data_uri(src)
            source = None
        else:
            content_type, data = await self._download(src, client)
            source = src

        if len(data) > self.config.max_attachment_size:
            raise AttachmentError(
                f"Image is too large to import ({len(data)} bytes, "
                f"limit {self.config.max_attachment_size})"
            )

        attachment = StoredAttachment(
            id=generate_attachment_id(actor.team_id, actor.id, data),
            team_id=actor.team_id,
            actor_id=actor.id,
            content_type=content_type,
            size=len(data),
            checksum=xxhash.xxh32(data).intdigest(),
            source=source,
        )
        await asyncio.to_thread(self.store.save, attachment, data, ip, transaction)
        logger.debug("Stored attachment %s (%d bytes)", attachment.id, attachment.size)
        return attachment.id

    async def _download(self, url: str, client: Optional[httpx.AsyncClient]):
        if client is None:
            raise AttachmentError(f"No HTTP client available to fetch {url}")
        try:
            response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise AttachmentError(f"Failed to fetch image {url}: {e}") from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not content_type.startswith("image/"):
            raise AttachmentError(f"Not an image: {url} ({content_type or 'unknown type'})")
        return content_type, response.content


def decode_data_uri(uri: str):
    """
    Decode a base64 data URI.

    Returns:
        Tuple of (content type, bytes)
    """
    match = DATA_URI_PATTERN.match(uri)
    if not match:
        raise AttachmentError("Unsupported data URI (only base64 is supported)")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise AttachmentError(f"Invalid base64 image data: {e}") from e
    return match.group("type"), data
