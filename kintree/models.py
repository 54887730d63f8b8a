import uuid, enum
from datetime import datetime, timezone
from sqlalchemy import String, Text, Boolean, Integer, JSON, Enum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Base(DeclarativeBase):
    pass


class Gender(str, enum.Enum):
    M = "M"
    F = "F"
    O = "O"
    U = "U"


class Status(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"
    DRAFT = "draft"


class RelType(str, enum.Enum):
    PARENT = "parent"
    CHILD = "child"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    GRANDPARENT = "grandparent"
    GRANDCHILD = "grandchild"
    AUNT_UNCLE = "aunt_uncle"
    NIECE_NEPHEW = "niece_nephew"
    COUSIN = "cousin"
    IN_LAW = "in_law"
    GUARDIAN = "guardian"
    WARD = "ward"
    ADOPTIVE_PARENT = "adoptive_parent"
    ADOPTED_CHILD = "adopted_child"
    STEP_PARENT = "step_parent"
    STEP_CHILD = "step_child"
    FOSTER_PARENT = "foster_parent"
    FOSTER_CHILD = "foster_child"
    GODPARENT = "godparent"
    GODCHILD = "godchild"
    MARRIED = "married"


class Person(Base):
    __tablename__ = "person"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    maiden_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nickname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str | None] = mapped_column(String(50), nullable=True)
    gender: Mapped[Gender] = mapped_column(Enum(Gender), nullable=False, default=Gender.U)

    birth_date: Mapped[str | None] = mapped_column(String(40), nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String(200), nullable=True)
    birth_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    death_date: Mapped[str | None] = mapped_column(String(40), nullable=True)
    death_place: Mapped[str | None] = mapped_column(String(200), nullable=True)
    death_country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    photo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    photo_thumbnail: Mapped[str | None] = mapped_column(String(500), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    wiki_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    occupation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    education: Mapped[str | None] = mapped_column(String(200), nullable=True)
    nationality: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ethnicity: Mapped[str | None] = mapped_column(String(100), nullable=True)
    religion: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)

    status: Mapped[Status] = mapped_column(Enum(Status), nullable=False, default=Status.ACTIVE)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_deceased: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False, default=_now)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False, default=_now, onupdate=_now)


class Family(Base):
    """Legacy partner/children grouping. Still read to supplement relationships."""
    __tablename__ = "family"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    family_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    husband: Mapped[str | None] = mapped_column(String(36), nullable=True)
    wife: Mapped[str | None] = mapped_column(String(36), nullable=True)
    partners: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    children: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    marriage_date: Mapped[str | None] = mapped_column(String(40), nullable=True)
    marriage_place: Mapped[str | None] = mapped_column(String(200), nullable=True)
    divorce_date: Mapped[str | None] = mapped_column(String(40), nullable=True)
    is_divorced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_historic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)
    status: Mapped[Status] = mapped_column(Enum(Status), nullable=False, default=Status.ACTIVE)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False, default=_now)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False, default=_now, onupdate=_now)


class Relationship(Base):
    __tablename__ = "relationship"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    # no FK: the store does not enforce references, the engine tolerates dangling ids
    person_a: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    person_b: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    type: Mapped[RelType] = mapped_column(Enum(RelType), nullable=False)
    is_bidirectional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    date: Mapped[str | None] = mapped_column(String(40), nullable=True)
    place: Mapped[str | None] = mapped_column(String(200), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text, nullable=True)
    status: Mapped[Status] = mapped_column(Enum(Status), nullable=False, default=Status.ACTIVE)

    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[str] = mapped_column(String(40), nullable=False, default=_now)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False, default=_now, onupdate=_now)
