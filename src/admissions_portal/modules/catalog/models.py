"""
Catalog Models

Universities and their programs. Read-only from the API's point of view; rows
are loaded by the data import tooling.
"""

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from admissions_portal.core.database import Base


class University(Base):
    __tablename__ = "universities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<University(id={self.id}, name={self.name})>"


class Program(Base):
    __tablename__ = "programs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    university_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("universities.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    tuition: Mapped[str] = mapped_column(String(100), nullable=False)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    intake: Mapped[str] = mapped_column(String(100), nullable=False)
    degree: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    study_field: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    requirements: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    has_scholarship: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Program(id={self.id}, name={self.name}, university_id={self.university_id})>"
