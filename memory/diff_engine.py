"""Positional diffs and deduplication for context item lists."""

import json
import logging
from typing import List, Optional

from rapidfuzz import fuzz
from rapidfuzz.distance import Indel

from schemas.context import ContextItem
from .hashing import ContentHasher
from .models import ContextDiff, ModifiedContextItem

logger = logging.getLogger(__name__)


def _size(text: str) -> int:
    return len(text.encode("utf-8"))


def _is_length(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class DiffEngine:
    """
    Computes and applies diffs between two ordered context snapshots.

    Items are compared by position, not identity: inserting an item
    anywhere but the end shifts every later position and is reported as
    a run of modifications.

    A modification payload is a JSON edit script::

        {"from": <old bytes>, "to": <new bytes>, "ops": [["=", 12], ["-", 3], ["+", "abc"]]}

    ``=`` keeps characters of the old content, ``-`` skips them and ``+``
    inserts text. Similar contents get a fine-grained script built from
    Indel opcodes; dissimilar ones get a full replacement.
    """

    DEFAULT_SIMILARITY_THRESHOLD = 60.0

    def __init__(
        self,
        hasher: Optional[ContentHasher] = None,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    ):
        """
        Initialize diff engine.

        Args:
            hasher: Content hasher (default: ContentHasher)
            similarity_threshold: Minimum rapidfuzz ratio (0-100) for a
                fine-grained edit script instead of a full replacement
        """
        self.hasher = hasher or ContentHasher()
        self.similarity_threshold = similarity_threshold

    def create_diff(self, old: List[ContextItem], new: List[ContextItem]) -> ContextDiff:
        """
        Compute the positional diff turning ``old`` into ``new``.

        Args:
            old: Previous context snapshot
            new: Incoming context snapshot

        Returns:
            ContextDiff with added, removed and modified positions
        """
        common = min(len(old), len(new))

        added_items = [item.model_copy(deep=True) for item in new[common:]]
        removed_item_ids = [str(i) for i in range(common, len(old))]

        modified_items = []
        for i in range(common):
            old_hash = self.hasher.hash(old[i].content)
            new_hash = self.hasher.hash(new[i].content)
            if old_hash != new_hash:
                modified_items.append(ModifiedContextItem(
                    item_id=str(i),
                    previous_content_hash=old_hash,
                    content_diff=self.compute_text_diff(old[i].content, new[i].content),
                ))

        original_size = sum(_size(item.content) for item in old)
        compressed_size = (
            sum(_size(item.content) for item in added_items)
            + sum(_size(mod.content_diff) for mod in modified_items)
        )
        compression_ratio = compressed_size / original_size if original_size > 0 else 1.0

        return ContextDiff(
            added_items=added_items,
            removed_item_ids=removed_item_ids,
            modified_items=modified_items,
            compression_ratio=compression_ratio,
        )

    def apply_diff(self, base: List[ContextItem], diff: ContextDiff) -> List[ContextItem]:
        """
        Apply a diff to a base snapshot.

        Removed positions are dropped, modified positions get their content
        rebuilt from the edit script, added items are appended. Position
        keys that are malformed or out of range are ignored, and so are
        modifications whose previous content hash does not match the base.

        Args:
            base: Snapshot the diff was computed against
            diff: Diff to apply

        Returns:
            New list of context items; ``base`` is left untouched
        """
        removed = set()
        for key in diff.removed_item_ids:
            index = self._parse_position(key, len(base))
            if index is not None:
                removed.add(index)

        replacements = {}
        for mod in diff.modified_items:
            index = self._parse_position(mod.item_id, len(base))
            if index is None or index in removed:
                continue
            if self.hasher.hash(base[index].content) != mod.previous_content_hash:
                logger.debug(f"Skipping stale modification at position {index}")
                continue
            content = self.patch_text(base[index].content, mod.content_diff)
            if content is not None:
                replacements[index] = content

        result = []
        for index, item in enumerate(base):
            if index in removed:
                continue
            if index in replacements:
                result.append(item.model_copy(update={"content": replacements[index]}, deep=True))
            else:
                result.append(item)

        result.extend(item.model_copy(deep=True) for item in diff.added_items)
        return result

    def compress(self, items: List[ContextItem]) -> List[ContextItem]:
        """Drop later items whose content hash was already seen, keeping order."""
        seen = set()
        compressed = []
        for item in items:
            content_hash = self.hasher.hash(item.content)
            if content_hash not in seen:
                seen.add(content_hash)
                compressed.append(item)
        return compressed

    def similarity(self, old_text: str, new_text: str) -> float:
        """Similarity score between two texts, 0-100."""
        return fuzz.ratio(old_text, new_text)

    def compute_text_diff(self, old_text: str, new_text: str) -> str:
        """Build the JSON edit script turning ``old_text`` into ``new_text``."""
        if self.similarity(old_text, new_text) >= self.similarity_threshold:
            ops = self._edit_ops(old_text, new_text)
        else:
            ops = []
            if old_text:
                ops.append(["-", len(old_text)])
            if new_text:
                ops.append(["+", new_text])

        return json.dumps(
            {"from": _size(old_text), "to": _size(new_text), "ops": ops},
            ensure_ascii=False,
            separators=(",", ":"),
        )

    def patch_text(self, old_text: str, payload: str) -> Optional[str]:
        """
        Replay an edit script on ``old_text``.

        Returns None when the payload cannot be parsed, holds malformed ops
        or was not computed against content of this length.
        """
        try:
            script = json.loads(payload)
            if script["from"] != _size(old_text):
                return None

            parts = []
            cursor = 0
            for op, arg in script["ops"]:
                if op in ("=", "-") and not _is_length(arg):
                    return None
                if op == "=":
                    parts.append(old_text[cursor:cursor + arg])
                    cursor += arg
                elif op == "-":
                    cursor += arg
                elif op == "+" and isinstance(arg, str):
                    parts.append(arg)
                else:
                    return None
        except (ValueError, KeyError, TypeError) as e:
            logger.debug(f"Ignoring unusable diff payload: {e}")
            return None

        if cursor > len(old_text):
            return None
        return "".join(parts) + old_text[cursor:]

    @staticmethod
    def _edit_ops(old_text: str, new_text: str) -> list:
        ops = []
        for opcode in Indel.opcodes(old_text, new_text):
            src_len = opcode.src_end - opcode.src_start
            if opcode.tag == "equal":
                ops.append(["=", src_len])
                continue
            if src_len:
                ops.append(["-", src_len])
            if opcode.dest_end > opcode.dest_start:
                ops.append(["+", new_text[opcode.dest_start:opcode.dest_end]])
        return ops

    @staticmethod
    def _parse_position(key: str, length: int) -> Optional[int]:
        try:
            index = int(key)
        except (TypeError, ValueError):
            return None
        if 0 <= index < length:
            return index
        return None
