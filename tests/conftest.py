import zipfile

import httpx
import pytest

from external_choices.cache import ChoiceCache, MemoryCacheStore
from external_choices.config import Settings
from external_choices.fetcher import ContentFetcher
from external_choices.media import MediaLibrary
from external_choices.resolver import ChoiceResolver
from external_choices.validator import ChoiceValidator

SITE_HOST = "forms.example.test"
MEDIA_URL = f"https://{SITE_HOST}/media"
REMOTE = "https://data.example.org"

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RemoteFiles:
    """Serves payloads by URL through httpx.MockTransport and records each request."""

    def __init__(self):
        self.files = {}
        self.requests = []

    def serve(self, url, content, status=200):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[url] = (status, content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url not in self.files:
            return httpx.Response(404)
        status, content = self.files[url]
        return httpx.Response(status, content=content)


@pytest.fixture
def media_dir(tmp_path):
    path = tmp_path / "media"
    path.mkdir()
    return path


@pytest.fixture
def settings(media_dir):
    return Settings(
        site_host=SITE_HOST,
        media_root=media_dir,
        media_base_url=MEDIA_URL,
        log_level="WARNING",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def remote():
    return RemoteFiles()


@pytest.fixture
def media_library(settings):
    return MediaLibrary(settings.media_root, settings.media_base_url)


@pytest.fixture
def http_client(remote):
    client = httpx.Client(transport=httpx.MockTransport(remote.handler))
    yield client
    client.close()


@pytest.fixture
def fetcher(settings, media_library, http_client):
    return ContentFetcher(settings, media_library, client=http_client)


@pytest.fixture
def cache(clock):
    return ChoiceCache(MemoryCacheStore(clock))


@pytest.fixture
def resolver(settings, fetcher, cache, media_library):
    return ChoiceResolver(settings, fetcher, cache, ChoiceValidator(), media_library)


def _sheet_xml(rows_xml: str) -> str:
    return f'<worksheet xmlns="{MAIN_NS}"><sheetData>{rows_xml}</sheetData></worksheet>'


def _shared_strings_xml(items) -> str:
    body = "".join(f"<si>{item}</si>" for item in items)
    return f'<sst xmlns="{MAIN_NS}" count="{len(items)}">{body}</sst>'


@pytest.fixture
def make_xlsx():
    """Write a minimal workbook; ``rows_xml`` is the inner XML of sheetData."""

    def build(path, rows_xml, shared_strings=None, sheet_name="sheet1.xml", workbook=False, raw_sheet=None):
        sheet_part = f"xl/worksheets/{sheet_name}"
        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")
            if workbook:
                archive.writestr(
                    "xl/workbook.xml",
                    f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}"><sheets>'
                    '<sheet name="Data" sheetId="1" r:id="rId1"/>'
                    "</sheets></workbook>",
                )
                archive.writestr(
                    "xl/_rels/workbook.xml.rels",
                    f'<Relationships xmlns="{PKG_REL_NS}">'
                    f'<Relationship Id="rId1" Type="{REL_NS}/worksheet" Target="worksheets/{sheet_name}"/>'
                    "</Relationships>",
                )
            if shared_strings is not None:
                archive.writestr("xl/sharedStrings.xml", _shared_strings_xml(shared_strings))
            if raw_sheet is not None:
                archive.writestr(sheet_part, raw_sheet)
            elif rows_xml is not None:
                archive.writestr(sheet_part, _sheet_xml(rows_xml))
        return path

    return build
