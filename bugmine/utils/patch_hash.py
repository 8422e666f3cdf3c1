"""
Patch Hash Utility
==================
Generate a deterministic hash of a persisted patch file.

Rules:
    - Hash the raw bytes of the patch, so binary hunks count too.
    - Use SHA-256 truncated to 16 hex chars for compactness.
    - Deterministic: same patch always produces same hash.
    - Empty patch → empty string.
"""
import hashlib

_CHUNK_SIZE = 1 << 16


def compute_patch_hash(patch_path: str) -> str:
    """
    Hash the patch file at ``patch_path``.

    Parameters
    ----------
    patch_path : str
        Path to a unified diff written by the Patch Deriver.

    Returns
    -------
    str
        16-character hex hash. Empty string if the patch is empty.
    """
    digest = hashlib.sha256()
    size = 0
    with open(patch_path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
            size += len(chunk)

    if size == 0:
        return ""
    return digest.hexdigest()[:16]
