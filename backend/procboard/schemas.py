from datetime import datetime
from typing import Annotated, Optional, Any, Dict, Literal, List
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from uuid import UUID

from .timeutils import ensure_utc, format_utc


UtcDatetime = Annotated[
    datetime,
    AfterValidator(ensure_utc),
    PlainSerializer(format_utc, return_type=str, when_used="json"),
]

ProcessStatus = Literal["done", "in_progress", "pending"]
CardStatus = Literal["pending", "in_progress", "done"]
Assignee = Literal[
    "DSI",
    "Infraestructura",
    "Contabilidad",
    "Operaciones",
    "Redes",
    "Trade",
    "DragonTaill",
]
NamespaceKindName = Literal["lists", "cards", "charts"]


def _required_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class ProcessCreate(BaseModel):
    name: str
    start_at: UtcDatetime
    end_at: UtcDatetime
    status: ProcessStatus = "pending"
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value):
        return _required_text(value)


class ProcessUpdate(BaseModel):
    name: Optional[str] = None
    start_at: Optional[UtcDatetime] = None
    end_at: Optional[UtcDatetime] = None
    status: Optional[ProcessStatus] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value):
        return _required_text(value)


class ProcessOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    start_at: UtcDatetime
    end_at: UtcDatetime
    status: ProcessStatus
    created_at: UtcDatetime
    updated_at: UtcDatetime
    model_config = ConfigDict(from_attributes=True)


class ProcessCreated(BaseModel):
    process: ProcessOut
    namespaces: Dict[NamespaceKindName, str]


class KindReport(BaseModel):
    """Outcome of one structural step on a single namespace kind."""

    kind: NamespaceKindName
    outcome: Literal["renamed", "dropped", "skipped_absent", "failed"]
    namespace: str
    target: Optional[str] = None
    detail: Optional[str] = None


class RenameReport(BaseModel):
    previous_name: str
    name: str
    kinds: List[KindReport]
    partial_failure: bool = False


class ProcessUpdateResult(BaseModel):
    process: ProcessOut
    rename: Optional[RenameReport] = None


class DeleteReport(BaseModel):
    name: str
    metadata: Literal["deleted", "already_absent"]
    kinds: List[KindReport]
    partial_failure: bool = False

    @property
    def found(self) -> bool:
        if self.metadata == "deleted":
            return True
        return any(k.outcome != "skipped_absent" for k in self.kinds)


class ReconcileRequest(BaseModel):
    previous_name: str

    @field_validator("previous_name")
    @classmethod
    def check_name(cls, value):
        return _required_text(value)


class ListCreate(BaseModel):
    title: str

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _required_text(value)


class ListUpdate(BaseModel):
    title: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _required_text(value)


class ListOut(BaseModel):
    id: str
    title: str
    created_at: UtcDatetime
    updated_at: UtcDatetime


class CardCreate(BaseModel):
    # open schema: unknown keys are kept and persisted as card attributes
    model_config = ConfigDict(extra="allow")

    title: str
    list_id: str
    assignee: Optional[Assignee] = None
    description: Optional[str] = None
    status: CardStatus = "pending"
    start_at: Optional[UtcDatetime] = None
    due_at: Optional[UtcDatetime] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _required_text(value)

    @field_validator("list_id")
    @classmethod
    def check_list(cls, value):
        return _required_text(value)


class CardUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    list_id: Optional[str] = None
    assignee: Optional[Assignee] = None
    description: Optional[str] = None
    status: Optional[CardStatus] = None
    start_at: Optional[UtcDatetime] = None
    due_at: Optional[UtcDatetime] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, value):
        return _required_text(value)

    @field_validator("list_id")
    @classmethod
    def check_list(cls, value):
        return _required_text(value)


class CardOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    list_id: str
    title: str
    assignee: Optional[str] = None
    description: Optional[str] = None
    status: CardStatus
    start_at: Optional[UtcDatetime] = None
    due_at: Optional[UtcDatetime] = None
    completed_at: Optional[UtcDatetime] = None
    completion_message: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class ChartCreate(BaseModel):
    chart_type: str
    filter: Optional[str] = None
    period: Optional[str] = None

    @field_validator("chart_type")
    @classmethod
    def check_type(cls, value):
        return _required_text(value)


class ChartUpdate(BaseModel):
    chart_type: Optional[str] = None
    filter: Optional[str] = None
    period: Optional[str] = None

    @field_validator("chart_type")
    @classmethod
    def check_type(cls, value):
        return _required_text(value)


class ChartOut(BaseModel):
    id: str
    chart_type: str
    filter: Optional[str] = None
    period: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class DeletedOut(BaseModel):
    id: str
    deleted: bool = True
    cascaded: Dict[str, Any] = Field(default_factory=dict)
