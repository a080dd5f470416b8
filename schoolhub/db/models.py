"""
SQLAlchemy 2.x ORM models for the SchoolHub API.

Models use the Mapped[] type annotation syntax and mapped_column.
Every entity carries an opaque string id (a UUID4) that is generated at
insert time and never changes afterwards.
"""

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, validates


def new_entity_id() -> str:
    """Generate a fresh entity identifier."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    @validates("id")
    def _validate_id_immutable(self, _key: str, value: str) -> str:
        current = self.__dict__.get("id")
        if current is not None and value != current:
            raise ValueError(
                f"{type(self).__name__}.id is immutable (current={current}, new={value})"
            )
        return value


class Branch(Base):
    """A physical branch (site) of the school."""

    __tablename__ = "branches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_entity_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(10), nullable=True)

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, name={self.name})>"


class Customer(Base):
    """A customer, optionally attached to a branch."""

    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_entity_id)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(10), nullable=False)
    branch_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("branches.id"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, full_name={self.full_name})>"


class Teacher(Base):
    """A teacher, optionally assigned to a customer."""

    __tablename__ = "teachers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_entity_id)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(10), nullable=False)
    customer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("customers.id"), nullable=True, index=True
    )

    def __repr__(self) -> str:
        return f"<Teacher(id={self.id}, full_name={self.full_name})>"
