"""Catalog Repository - read-only queries over universities and programs."""

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.modules.catalog.models import Program, University

UNKNOWN_PROGRAM = "Unknown program"
UNKNOWN_UNIVERSITY = "Unknown university"


class CatalogRepository:
    @staticmethod
    async def list_universities(db: AsyncSession) -> list[University]:
        result = await db.execute(select(University).order_by(University.name))
        return list(result.scalars().all())

    @staticmethod
    async def get_university(db: AsyncSession, university_id: int) -> University | None:
        return await db.get(University, university_id)

    @staticmethod
    async def count_universities(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(University.id)))
        return result.scalar_one()

    @staticmethod
    async def list_programs(
        db: AsyncSession,
        *,
        university_id: int | None = None,
        degree: str | None = None,
        study_field: str | None = None,
        search: str | None = None,
    ) -> list[Program]:
        stmt = select(Program).order_by(Program.name, Program.id)

        if university_id is not None:
            stmt = stmt.where(Program.university_id == university_id)
        if degree:
            stmt = stmt.where(Program.degree == degree)
        if study_field:
            stmt = stmt.where(Program.study_field == study_field)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Program.name).like(pattern),
                    func.lower(Program.study_field).like(pattern),
                )
            )

        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_program(db: AsyncSession, program_id: int) -> Program | None:
        return await db.get(Program, program_id)

    @staticmethod
    async def get_display_names(db: AsyncSession, program_id: int) -> tuple[str, str]:
        """
        (program name, university name) for notifications.

        Missing rows render as placeholders rather than failing.
        """
        result = await db.execute(
            select(Program.name, University.name)
            .select_from(Program)
            .outerjoin(University, University.id == Program.university_id)
            .where(Program.id == program_id)
        )
        row = result.first()
        if row is None:
            return UNKNOWN_PROGRAM, UNKNOWN_UNIVERSITY
        program_name, university_name = row
        return program_name, university_name or UNKNOWN_UNIVERSITY
