"""Heuristics for telling text files from binary ones."""

from __future__ import annotations

from typing import Optional

SAMPLE_SIZE = 8192
NON_PRINTABLE_RATIO = 0.1
_TEXT_CONTROL_BYTES = {9, 10, 13}  # tab, LF, CR


def binary_detection_reason(content: bytes, sample_size: int = SAMPLE_SIZE) -> Optional[str]:
    """Why ``content`` looks binary, or None if it looks like text.

    Any null byte, or more than 10% control characters in the first
    ``sample_size`` bytes, counts as binary.
    """
    sample = content[:sample_size]
    if not sample:
        return None

    null_bytes = sample.count(0)
    if null_bytes:
        return f"File contains {null_bytes} null byte(s) in the first {len(sample)} bytes"

    non_printable = sum(1 for byte in sample if byte < 32 and byte not in _TEXT_CONTROL_BYTES)
    ratio = non_printable / len(sample)
    if ratio > NON_PRINTABLE_RATIO:
        return f"File contains {ratio * 100:.1f}% non-printable characters"
    return None


def is_binary_content(content: bytes, sample_size: int = SAMPLE_SIZE) -> bool:
    return binary_detection_reason(content, sample_size) is not None
