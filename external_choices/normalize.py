"""
Text normalization for tabular sources.

Responsibilities:
- BOM stripping
- encoding detection + transcoding to str
- newline normalization
- delimiter detection
"""

from __future__ import annotations

import logging

from charset_normalizer import from_bytes

from .rules import CANDIDATE_ENCODINGS, CSV_DELIMITERS, DEFAULT_DELIMITER, UTF8_BOM

logger = logging.getLogger(__name__)


def detect_encoding(raw: bytes) -> str:
    """
    Pick the encoding of ``raw`` among UTF-8, Latin-1 and Windows-1252.

    Rules:
    - Bytes that decode cleanly as UTF-8 are UTF-8.
    - Otherwise ask charset-normalizer, restricted to the single-byte candidates.
    - If it has no opinion, use Latin-1, which decodes any byte sequence.
    """
    try:
        raw.decode("utf-8")
        return "utf_8"
    except UnicodeDecodeError:
        pass

    single_byte = [enc for enc in CANDIDATE_ENCODINGS if enc != "utf_8"]
    match = from_bytes(raw, cp_isolation=single_byte).best()
    if match is not None and match.encoding in single_byte:
        return match.encoding

    return "latin_1"


def normalize_text(raw: bytes) -> str:
    """Strip a UTF-8 BOM, decode to str, and normalize CRLF/CR to LF."""
    if raw.startswith(UTF8_BOM):
        raw = raw[len(UTF8_BOM):]

    encoding = detect_encoding(raw)
    if encoding != "utf_8":
        logger.debug("Transcoding tabular source from %s", encoding)

    try:
        text = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        # cp1252 leaves a few bytes undefined; latin-1 maps every byte
        text = raw.decode("latin_1")

    # --- Newline normalization: CRLF/CR -> LF ---
    return text.replace("\r\n", "\n").replace("\r", "\n")


def first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def detect_delimiter(text: str) -> str:
    """
    Count each candidate delimiter in the first line only.

    The highest count wins; ties go to the earlier candidate (comma, semicolon,
    tab). A line with none of them is comma-delimited.
    """
    line = first_line(text)
    counts = {delim: line.count(delim) for delim in CSV_DELIMITERS}

    best = max(CSV_DELIMITERS, key=lambda delim: counts[delim])
    return best if counts[best] > 0 else DEFAULT_DELIMITER
