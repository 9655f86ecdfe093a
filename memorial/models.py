from __future__ import annotations
from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey, Index, Enum as SQLEnum, Boolean, JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import enum

class Base(DeclarativeBase):
    pass

class OfferingType(enum.Enum):
    CANDLE = "CANDLE"
    FLOWER = "FLOWER"
    INCENSE = "INCENSE"
    PRAYER = "PRAYER"

class ReminderFrequency(enum.Enum):
    ONCE = "ONCE"
    YEARLY = "YEARLY"
    MONTHLY = "MONTHLY"

class ContributionType(enum.Enum):
    PERSON_CREATE = "PERSON_CREATE"
    PERSON_UPDATE = "PERSON_UPDATE"
    REMEMBRANCE = "REMEMBRANCE"
    OFFERING = "OFFERING"

class ContributionStatus(enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class RelationshipType(enum.Enum):
    PARENT = "PARENT"
    CHILD = "CHILD"
    SPOUSE = "SPOUSE"
    SIBLING = "SIBLING"
    GRANDPARENT = "GRANDPARENT"
    GRANDCHILD = "GRANDCHILD"
    AUNT_UNCLE = "AUNT_UNCLE"
    NIECE_NEPHEW = "NIECE_NEPHEW"
    COUSIN = "COUSIN"
    OTHER = "OTHER"

class User(Base):
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    reminders: Mapped[List["MemorialReminder"]] = relationship("MemorialReminder", back_populates="user", cascade="all, delete-orphan")

class Location(Base):
    __tablename__ = 'locations'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index('idx_locations_name', 'name'),
    )

class Cemetery(Base):
    __tablename__ = 'cemeteries'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('locations.id', ondelete='SET NULL'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    location: Mapped[Optional["Location"]] = relationship("Location")

class Person(Base):
    __tablename__ = 'persons'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    date_of_death: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cause_of_death: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    place_of_birth_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('locations.id', ondelete='SET NULL'), nullable=True)
    place_of_death_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('locations.id', ondelete='SET NULL'), nullable=True)
    cemetery_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('cemeteries.id', ondelete='SET NULL'), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    place_of_birth: Mapped[Optional["Location"]] = relationship("Location", foreign_keys=[place_of_birth_id])
    place_of_death: Mapped[Optional["Location"]] = relationship("Location", foreign_keys=[place_of_death_id])
    cemetery: Mapped[Optional["Cemetery"]] = relationship("Cemetery", foreign_keys=[cemetery_id])
    memorial: Mapped[Optional["Memorial"]] = relationship("Memorial", back_populates="person", uselist=False, cascade="all, delete-orphan")
    photos: Mapped[List["Photo"]] = relationship("Photo", back_populates="person", cascade="all, delete-orphan")
    family_relationships: Mapped[List["FamilyRelationship"]] = relationship(
        "FamilyRelationship", back_populates="person", cascade="all, delete-orphan", foreign_keys="FamilyRelationship.person_id"
    )
    related_relationships: Mapped[List["FamilyRelationship"]] = relationship(
        "FamilyRelationship", back_populates="related_person", cascade="all, delete-orphan", foreign_keys="FamilyRelationship.related_person_id"
    )

    __table_args__ = (
        Index('idx_persons_name', 'last_name', 'first_name'),
        Index('idx_persons_date_of_death', 'date_of_death'),
        Index('idx_persons_created_at', 'created_at'),
    )

class Memorial(Base):
    __tablename__ = 'memorials'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[int] = mapped_column(Integer, ForeignKey('persons.id', ondelete='CASCADE'), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    person: Mapped["Person"] = relationship("Person", back_populates="memorial")
    remembrances: Mapped[List["Remembrance"]] = relationship("Remembrance", back_populates="memorial", cascade="all, delete-orphan")
    offerings: Mapped[List["VirtualOffering"]] = relationship("VirtualOffering", back_populates="memorial", cascade="all, delete-orphan")
    reminders: Mapped[List["MemorialReminder"]] = relationship("MemorialReminder", back_populates="memorial", cascade="all, delete-orphan")

class Remembrance(Base):
    __tablename__ = 'remembrances'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    memorial_id: Mapped[int] = mapped_column(Integer, ForeignKey('memorials.id', ondelete='CASCADE'), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    memorial: Mapped["Memorial"] = relationship("Memorial", back_populates="remembrances")

    __table_args__ = (
        Index('idx_remembrances_memorial', 'memorial_id'),
        Index('idx_remembrances_approved', 'approved', 'created_at'),
    )

class VirtualOffering(Base):
    __tablename__ = 'virtual_offerings'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    memorial_id: Mapped[int] = mapped_column(Integer, ForeignKey('memorials.id', ondelete='CASCADE'), nullable=False)
    offering_type: Mapped[OfferingType] = mapped_column(SQLEnum(OfferingType), nullable=False)
    message: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    author_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    memorial: Mapped["Memorial"] = relationship("Memorial", back_populates="offerings")

    __table_args__ = (
        Index('idx_offerings_memorial', 'memorial_id'),
    )

class MemorialReminder(Base):
    __tablename__ = 'memorial_reminders'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    memorial_id: Mapped[int] = mapped_column(Integer, ForeignKey('memorials.id', ondelete='CASCADE'), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    frequency: Mapped[ReminderFrequency] = mapped_column(SQLEnum(ReminderFrequency), nullable=False, default=ReminderFrequency.ONCE)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    memorial: Mapped["Memorial"] = relationship("Memorial", back_populates="reminders")
    user: Mapped["User"] = relationship("User", back_populates="reminders")

    __table_args__ = (
        Index('idx_reminders_user_memorial', 'user_id', 'memorial_id'),
    )

class Photo(Base):
    __tablename__ = 'photos'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[int] = mapped_column(Integer, ForeignKey('persons.id', ondelete='CASCADE'), nullable=False)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    person: Mapped["Person"] = relationship("Person", back_populates="photos")

    __table_args__ = (
        Index('idx_photos_person', 'person_id'),
    )

class FamilyRelationship(Base):
    __tablename__ = 'family_relationships'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[int] = mapped_column(Integer, ForeignKey('persons.id', ondelete='CASCADE'), nullable=False)
    related_person_id: Mapped[int] = mapped_column(Integer, ForeignKey('persons.id', ondelete='CASCADE'), nullable=False)
    relationship_type: Mapped[RelationshipType] = mapped_column(SQLEnum(RelationshipType), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    person: Mapped["Person"] = relationship("Person", back_populates="family_relationships", foreign_keys=[person_id])
    related_person: Mapped["Person"] = relationship("Person", back_populates="related_relationships", foreign_keys=[related_person_id])

    __table_args__ = (
        Index('idx_family_person', 'person_id'),
        Index('idx_family_related_person', 'related_person_id'),
    )

class Contribution(Base):
    """Review ticket mirroring a submission that has already been written."""
    __tablename__ = 'contributions'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    person_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('persons.id', ondelete='SET NULL'), nullable=True)
    type: Mapped[ContributionType] = mapped_column(SQLEnum(ContributionType), nullable=False)
    data: Mapped[Any] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[ContributionStatus] = mapped_column(SQLEnum(ContributionStatus), nullable=False, default=ContributionStatus.PENDING)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index('idx_contributions_status_submitted', 'status', 'submitted_at'),
        Index('idx_contributions_person', 'person_id'),
    )
