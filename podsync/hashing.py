from __future__ import annotations

import hashlib


def content_digest(contents: str | bytes) -> str:
    """SHA-256 of the file contents, lowercase hex. Strings are UTF-8 encoded."""
    if isinstance(contents, str):
        contents = contents.encode("utf-8")
    return hashlib.sha256(contents).hexdigest()


def digests_match(expected: str, remote: str | None) -> bool:
    # The sidecar answers with the bare digest; tolerate a trailing newline.
    if remote is None:
        return False
    return expected == remote.strip().lower()
