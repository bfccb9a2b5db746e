"""
Deterministic ID generation for docimport.

ID Policy (Deterministic Hashes):
- attachment_id: sha256(team_id + actor_id + sha256(data))[:16] - the same
  bytes uploaded by the same user resolve to the same attachment
- storage key: team_id/attachment_id with path separators normalized
"""

import hashlib


def normalize_key_part(part: str) -> str:
    """
    Normalize one segment of a storage key.

    - Use forward slashes only as separators, never inside a segment
    - Drop . and .. so a segment can't escape its parent
    """
    normalized = part.replace("\\", "/").replace("/", "_")
    if normalized in ("", ".", ".."):
        return "_"
    return normalized


def generate_attachment_id(team_id: str, actor_id: str, data: bytes) -> str:
    """
    Generate a content-addressed attachment ID.

    Args:
        team_id: Team owning the attachment
        actor_id: User who imported the attachment
        data: Raw attachment bytes

    Returns:
        16-character hex digest of the combined hash
    """
    data_hash = hashlib.sha256(data).hexdigest()
    combined = f"{team_id}{actor_id}{data_hash}"
    hash_obj = hashlib.sha256(combined.encode("utf-8"))
    return hash_obj.hexdigest()[:16]


def attachment_key(team_id: str, attachment_id: str) -> str:
    """Relative storage key for an attachment."""
    return f"{normalize_key_part(team_id)}/{normalize_key_part(attachment_id)}"
