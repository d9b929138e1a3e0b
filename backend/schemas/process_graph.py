# schemas/process_graph.py
from __future__ import annotations
from typing import List, Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator

# ---------- Core Enums ----------

class RecordKind(str, Enum):
    PRODUCT = "product"
    TRANSFORMATION = "transformation"

class LayoutDirection(str, Enum):
    TB = "TB"
    LR = "LR"

class HandlePosition(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

# Matched case-insensitively as substrings of the free-text type field
TRANSFORMATION_TOKENS = ("преобразование", "transformation")

# Type labels written back when a record is created from an explicit kind
KIND_LABELS = {
    RecordKind.PRODUCT: "Продукт",
    RecordKind.TRANSFORMATION: "Преобразование",
}


def detect_kind(type_label: Any) -> RecordKind:
    """Decide the record kind from the generator's free-text type field."""
    if not isinstance(type_label, str):
        return RecordKind.PRODUCT
    lowered = type_label.lower()
    if any(token in lowered for token in TRANSFORMATION_TOKENS):
        return RecordKind.TRANSFORMATION
    return RecordKind.PRODUCT

# ---------- Record (source of truth) ----------

class Record(BaseModel):
    """
    Flat item produced by the graph generator.

    Accepts the generator's domain-language keys ("Id узла", "Тип", ...) as well
    as the plain field names. `kind` is computed once here and never re-derived.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("Id узла", "id"), serialization_alias="Id узла")
    type_label: str = Field(
        default="",
        validation_alias=AliasChoices("Тип", "type", "type_label"),
        serialization_alias="Тип",
    )
    name: str = Field(default="", validation_alias=AliasChoices("Название", "name"), serialization_alias="Название")
    description: str = Field(
        default="",
        validation_alias=AliasChoices("Описание", "description"),
        serialization_alias="Описание",
    )
    inputs: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("Входы", "inputs"),
        serialization_alias="Входы",
    )
    outputs: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("Выходы", "outputs"),
        serialization_alias="Выходы",
    )
    kind: RecordKind = RecordKind.PRODUCT

    @model_validator(mode="before")
    @classmethod
    def _label_from_kind(cls, data: Any) -> Any:
        # A record created with an explicit kind but no type text gets the canonical label
        if isinstance(data, dict) and data.get("kind") is not None:
            data = dict(data)
            if isinstance(data["kind"], str):
                data["kind"] = data["kind"].strip().lower()
            if not any(data.get(key) for key in ("Тип", "type", "type_label")):
                data["type_label"] = KIND_LABELS[RecordKind(data["kind"])]
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type_label", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("name", "description", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    @field_validator("inputs", "outputs", mode="before")
    @classmethod
    def _coerce_references(cls, value: Any) -> List[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(ref) for ref in value if ref is not None]

    @model_validator(mode="after")
    def _assign_kind(self) -> "Record":
        self.kind = detect_kind(self.type_label)
        return self

    @property
    def is_transformation(self) -> bool:
        return self.kind == RecordKind.TRANSFORMATION

    def to_wire(self) -> Dict[str, Any]:
        """Dump using the generator's domain-language keys."""
        return self.model_dump(by_alias=True, exclude={"kind"})

class GraphPayload(BaseModel):
    nodes: List[Record] = Field(default_factory=list)

# ---------- Derived Graph Models ----------

class Position(BaseModel):
    x: float = 0
    y: float = 0

class NodeData(BaseModel):
    label: str
    description: str = ""
    original_data: Record

class GraphNode(BaseModel):
    id: str
    kind: RecordKind
    position: Position = Field(default_factory=Position)
    data: NodeData
    draggable: bool = False
    source_position: Optional[HandlePosition] = None
    target_position: Optional[HandlePosition] = None

class EdgeStyle(BaseModel):
    stroke: str = "#b1b1b7"
    stroke_width: int = 2

class GraphEdge(BaseModel):
    id: str
    source: str
    target: str
    type: str = "smoothstep"
    animated: bool = False
    label: Optional[str] = None
    style: EdgeStyle = Field(default_factory=EdgeStyle)

class ProcessGraph(BaseModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
    direction: LayoutDirection = LayoutDirection.TB

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

# ---------- Mutation / Inspection Models ----------

class DeletionSet(BaseModel):
    node_ids: List[str] = Field(default_factory=list)
    edge_ids: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.node_ids

class RecordUpdate(BaseModel):
    """Partial field update for an existing record; the id is immutable."""
    model_config = ConfigDict(populate_by_name=True)

    type_label: Optional[str] = Field(default=None, validation_alias=AliasChoices("Тип", "type", "type_label"))
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("Название", "name"))
    description: Optional[str] = Field(default=None, validation_alias=AliasChoices("Описание", "description"))
    inputs: Optional[List[str]] = Field(default=None, validation_alias=AliasChoices("Входы", "inputs"))
    outputs: Optional[List[str]] = Field(default=None, validation_alias=AliasChoices("Выходы", "outputs"))

class ConnectionsUpdate(BaseModel):
    inputs: Optional[List[str]] = None
    outputs: Optional[List[str]] = None

class NodeInspection(BaseModel):
    id: str
    kind: RecordKind
    label: str
    description: str = ""
    dependencies: List[str] = Field(default_factory=list)
