"""Content fingerprints for change detection and deduplication."""

import hashlib


class ContentHasher:
    """Deterministic, non-cryptographic-use fingerprint of text content."""

    DIGEST_SIZE = 8

    def hash(self, content: str) -> str:
        """Return a 16-character hex token for ``content``."""
        digest = hashlib.blake2b(content.encode("utf-8"), digest_size=self.DIGEST_SIZE)
        return digest.hexdigest()
