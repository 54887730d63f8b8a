from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, computed_field, model_validator

from .models import Gender, Status, RelType

UNKNOWN_NAME = "Unknown"


def compose_name(*parts: Optional[str]) -> str:
    """Join the non-empty name parts with single spaces, or return "Unknown"."""
    joined = " ".join(p.strip() for p in parts if p and p.strip())
    return joined or UNKNOWN_NAME


# ── Persons ──

class PersonFields(BaseModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    maiden_name: Optional[str] = None
    nickname: Optional[str] = None
    title: Optional[str] = None
    gender: Gender = Gender.U
    birth_date: Optional[str] = None
    birth_place: Optional[str] = None
    birth_country: Optional[str] = None
    death_date: Optional[str] = None
    death_place: Optional[str] = None
    death_country: Optional[str] = None
    photo: Optional[str] = None
    photo_thumbnail: Optional[str] = None
    bio: Optional[str] = None
    wiki_id: Optional[str] = None
    occupation: Optional[str] = None
    education: Optional[str] = None
    nationality: Optional[str] = None
    ethnicity: Optional[str] = None
    religion: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    notes: Optional[str] = None
    metadata: Optional[str] = None
    status: Status = Status.ACTIVE
    is_public: bool = False
    display_order: int = 0
    is_deceased: bool = False


class PersonCreate(PersonFields):
    id: Optional[str] = None
    created_by: Optional[str] = None

    @model_validator(mode="after")
    def derive_name(self):
        if not self.name or not self.name.strip():
            self.name = compose_name(self.title, self.first_name, self.middle_name, self.last_name)
        return self


class PersonOut(PersonFields):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    metadata: Optional[str] = Field(default=None, validation_alias=AliasChoices("metadata_json", "metadata"))
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PersonPatch(PersonFields):
    """Partial update. Only fields explicitly set are written, whatever their value."""
    gender: Optional[Gender] = None
    status: Optional[Status] = None
    is_public: Optional[bool] = None
    display_order: Optional[int] = None
    is_deceased: Optional[bool] = None
    updated_by: Optional[str] = None

    @model_validator(mode="after")
    def required_columns_not_cleared(self):
        for field in ("name", "gender", "status", "is_public", "display_order", "is_deceased"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be cleared")
        if "name" in self.model_fields_set and not self.name.strip():
            raise ValueError("name cannot be blank")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


# ── Families ──

class FamilyFields(BaseModel):
    family_name: Optional[str] = None
    husband: Optional[str] = None
    wife: Optional[str] = None
    partners: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    marriage_date: Optional[str] = None
    marriage_place: Optional[str] = None
    divorce_date: Optional[str] = None
    is_divorced: bool = False
    is_historic: bool = False
    notes: Optional[str] = None
    metadata: Optional[str] = None
    status: Status = Status.ACTIVE
    display_order: int = 0
    created_by: Optional[str] = None


class FamilyCreate(FamilyFields):
    @model_validator(mode="after")
    def has_members(self):
        if not (self.husband or self.wife or self.partners or self.children):
            raise ValueError("A family needs at least one partner or one child")
        return self


class FamilyOut(FamilyFields):
    model_config = ConfigDict(from_attributes=True)

    id: str
    metadata: Optional[str] = Field(default=None, validation_alias=AliasChoices("metadata_json", "metadata"))
    updated_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ── Relationships ──

class RelCreate(BaseModel):
    person_a: str
    person_b: str
    type: RelType
    is_bidirectional: bool = False
    date: Optional[str] = None
    place: Optional[str] = None
    note: Optional[str] = None
    metadata: Optional[str] = None
    status: Status = Status.ACTIVE
    created_by: Optional[str] = None


class RelationshipOut(RelCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    metadata: Optional[str] = Field(default=None, validation_alias=AliasChoices("metadata_json", "metadata"))
    updated_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ── Graph snapshot ──

class NodeRels(BaseModel):
    parents: list[str] = Field(default_factory=list)
    spouses: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)


class GraphNode(BaseModel):
    id: str
    data: dict[str, Any] = Field(default_factory=dict)
    rels: NodeRels = Field(default_factory=NodeRels)


class DateRange(BaseModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class TransformOptions(BaseModel):
    include_private: bool = False
    filter_by_date_range: Optional[DateRange] = None
    detect_cycles: bool = False


class TransformMetadata(BaseModel):
    person_count: int = 0
    family_count: int = 0
    relationship_count: int = 0
    transformation_time_ms: float = 0.0
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class TransformResult(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    metadata: TransformMetadata = Field(default_factory=TransformMetadata)


class NodeUpdate(BaseModel):
    node: GraphNode
    changes: dict[str, Any] = Field(default_factory=dict)


class TreeDiff(BaseModel):
    new_nodes: list[GraphNode] = Field(default_factory=list)
    updated_nodes: list[NodeUpdate] = Field(default_factory=list)
    deleted_ids: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.new_nodes or self.updated_nodes or self.deleted_ids)


class ReconcileResult(BaseModel):
    persons_created: int = 0
    persons_updated: int = 0
    persons_deleted: int = 0
    relationships_created: int = 0
    relationships_deleted: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def saved_count(self) -> int:
        return (self.persons_created + self.persons_updated + self.persons_deleted
                + self.relationships_created + self.relationships_deleted)

    @computed_field
    @property
    def error_count(self) -> int:
        return len(self.errors)


class ValidationReport(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)


class TreeSaveRequest(BaseModel):
    current: list[GraphNode]
    original: list[GraphNode]
    user_id: str
