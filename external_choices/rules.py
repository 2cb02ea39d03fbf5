"""
Fixed limits and detection rules.

This file exists to make the hard ceilings explicit and enforceable.
"""

import re

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
FETCH_TIMEOUT_SECONDS = 30

MAX_CHOICES = 1000
ERROR_DISPLAY_LIMIT = 5
EMPTY_ROW_DISPLAY_LIMIT = 10

# < > " ' & \ and control characters
BLOCKED_VALUE_PATTERN = re.compile(r"[<>\"'&\\\x00-\x1f]")

CSV_DELIMITERS = (",", ";", "\t")
DEFAULT_DELIMITER = ","

UTF8_BOM = b"\xef\xbb\xbf"
CANDIDATE_ENCODINGS = ("utf_8", "latin_1", "cp1252")

CACHE_PREFIX = "ext_choices_"

HOUR_IN_SECONDS = 60 * 60
DAY_IN_SECONDS = 24 * HOUR_IN_SECONDS
WEEK_IN_SECONDS = 7 * DAY_IN_SECONDS
