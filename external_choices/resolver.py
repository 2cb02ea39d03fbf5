"""
Resolution pipeline: source -> cache -> fetch -> format -> parse -> validate -> cache.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Union
from urllib.parse import urlsplit

from . import csv_parser, json_parser, xlsx_parser
from .cache import ChoiceCache
from .config import Settings
from .errors import NoSource, UnknownFormat, XlsxRequiresUpload
from .fetcher import ContentFetcher
from .media import MediaLibrary
from .models import CacheStatus, Choice, DataFormat, RefreshFrequency, ResolvedSource, SourceDescriptor, SourceKind
from .validator import ChoiceValidator

logger = logging.getLogger(__name__)

# Parsers that work on fetched bytes; XLSX is read from its stored file instead
BYTE_PARSERS: Dict[DataFormat, Callable[[bytes, str, str], List[Choice]]] = {
    DataFormat.CSV: csv_parser.parse,
    DataFormat.JSON: json_parser.parse,
}

BYTE_COLUMN_READERS: Dict[DataFormat, Callable[[bytes], List[str]]] = {
    DataFormat.CSV: csv_parser.get_columns,
    DataFormat.JSON: json_parser.get_columns,
}


class ChoiceResolver:
    """Turns a source descriptor into a validated choice list."""

    def __init__(
        self,
        settings: Settings,
        fetcher: ContentFetcher,
        cache: ChoiceCache,
        validator: ChoiceValidator,
        media_library: MediaLibrary,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.cache = cache
        self.validator = validator
        self.media_library = media_library

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChoiceResolver":
        media_library = MediaLibrary(settings.media_root, settings.media_base_url)
        return cls(
            settings=settings,
            fetcher=ContentFetcher(settings, media_library),
            cache=ChoiceCache(default_ttl=ChoiceCache.get_ttl_for_frequency(settings.default_frequency)),
            validator=ChoiceValidator(),
            media_library=media_library,
        )

    # --- Source resolution ---

    def is_same_origin(self, url: str) -> bool:
        site_host = self.settings.site_host.strip().lower()
        if not site_host:
            return False
        return (urlsplit(url).hostname or "").lower() == site_host

    def resolve_source(self, descriptor: SourceDescriptor) -> ResolvedSource:
        if descriptor.kind == SourceKind.MEDIA:
            url = self.media_library.url_for(descriptor.locator) if descriptor.locator else None
            if not url:
                raise NoSource()
            # media files are always local
            return ResolvedSource(url=url, is_local=True)

        url = descriptor.locator.strip()
        if not url:
            raise NoSource()
        return ResolvedSource(url=url, is_local=self.is_same_origin(url))

    # --- Parsing ---

    def _detect_format(self, url: str) -> DataFormat:
        data_format = self.fetcher.detect_format(url)
        if data_format is None:
            raise UnknownFormat()
        return data_format

    def _xlsx_path(self, url: str) -> Path:
        path = self.media_library.path_for(url)
        if path is None:
            raise XlsxRequiresUpload()
        return path

    def _parse(self, url: str, data: bytes, label_selector: str, value_selector: str) -> List[Choice]:
        data_format = self._detect_format(url)
        if data_format == DataFormat.XLSX:
            return xlsx_parser.parse(self._xlsx_path(url), label_selector, value_selector)
        return BYTE_PARSERS[data_format](data, label_selector, value_selector)

    # --- Public operations ---

    def get_choices(self, descriptor: SourceDescriptor) -> List[Choice]:
        source = self.resolve_source(descriptor)
        identity = descriptor.identity(source.url)

        # Local files are fast to read directly
        if not source.is_local:
            cached = self.cache.get(identity)
            if cached:
                return cached

        data = self.fetcher.fetch(source.url)
        choices = self._parse(source.url, data, descriptor.label_selector, descriptor.value_selector)

        self.validator.validate(choices)

        if not source.is_local:
            ttl = self.cache.get_ttl_for_frequency(descriptor.refresh_frequency)
            self.cache.set(identity, choices, ttl)

        logger.info("Resolved %d choices from %s", len(choices), source.url)
        return choices

    def get_columns(self, descriptor: SourceDescriptor) -> List[str]:
        source = self.resolve_source(descriptor)
        data = self.fetcher.fetch(source.url)

        data_format = self._detect_format(source.url)
        if data_format == DataFormat.XLSX:
            return xlsx_parser.get_columns(self._xlsx_path(source.url))
        return BYTE_COLUMN_READERS[data_format](data)

    def force_refresh(
        self,
        locator: str,
        label_selector: str = "",
        value_selector: str = "",
        refresh_frequency: Union[RefreshFrequency, str] = RefreshFrequency.DAILY,
    ) -> List[Choice]:
        locator = locator.strip()
        if not locator:
            raise NoSource("No source URL provided.")

        descriptor = SourceDescriptor(
            kind=SourceKind.URL,
            locator=locator,
            label_selector=label_selector,
            value_selector=value_selector,
            refresh_frequency=refresh_frequency,
        )
        self.cache.clear(descriptor.identity())
        logger.info("Cache cleared for %s", locator)

        return self.get_choices(descriptor)

    def cache_status(self, descriptor: SourceDescriptor) -> CacheStatus:
        source = self.resolve_source(descriptor)
        return self.cache.get_status(descriptor.identity(source.url))

    def close(self) -> None:
        self.fetcher.close()
