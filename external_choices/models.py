from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    URL = "url"
    MEDIA = "media"


class RefreshFrequency(str, Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class DataFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"


class Choice(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: str
    selected: bool = False


class SourceDescriptor(BaseModel):
    """Where a field's options come from and how raw records map onto them."""

    kind: SourceKind = SourceKind.URL
    locator: str = Field(default="", description="URL, or media id for media sources")
    label_selector: str = Field(default="", description="Column/property name or index")
    value_selector: str = Field(default="", description="Column/property name or index")
    refresh_frequency: RefreshFrequency = RefreshFrequency.DAILY

    def identity(self, locator: Optional[str] = None) -> str:
        return f"{locator if locator is not None else self.locator}|{self.label_selector}|{self.value_selector}"


class ResolvedSource(BaseModel):
    url: str
    is_local: bool


class CacheStatus(BaseModel):
    status: str = Field(examples=["healthy", "stale", "error"])
    message: str
    count: Optional[int] = None


class SubmissionResult(BaseModel):
    is_valid: bool
    message: Optional[str] = None
    invalid_values: List[str] = Field(default_factory=list)


# --- API envelopes ---


class ChoicesResponse(BaseModel):
    choices: List[Choice]
    count: int


class ColumnsResponse(BaseModel):
    columns: List[str]


class RefreshRequest(BaseModel):
    locator: str
    label_selector: str = ""
    value_selector: str = ""
    refresh_frequency: RefreshFrequency = RefreshFrequency.DAILY


class RefreshResponse(BaseModel):
    message: str
    count: int


class SubmissionRequest(BaseModel):
    source: SourceDescriptor
    values: Union[str, List[str]] = ""


class PruneResponse(BaseModel):
    values: Union[str, List[str]]


class ErrorResponse(BaseModel):
    error: str
    message: str


class HealthResponse(BaseModel):
    ok: bool = True
