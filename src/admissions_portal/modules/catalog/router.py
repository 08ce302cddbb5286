"""
Catalog Router

Public, read-only catalog endpoints.

Endpoints:
- GET /universities - All universities
- GET /universities/{id} - One university
- GET /programs - Programs with optional filters
- GET /programs/{id} - One program with its university
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.database import get_db
from admissions_portal.core.errors import NotFoundError
from admissions_portal.modules.catalog.repository import CatalogRepository
from admissions_portal.modules.catalog.schemas import (
    ProgramResponse,
    ProgramWithUniversityResponse,
    UniversityResponse,
)

router = APIRouter()


@router.get("/universities", response_model=list[UniversityResponse], summary="List Universities")
async def list_universities(db: AsyncSession = Depends(get_db)) -> list[UniversityResponse]:
    universities = await CatalogRepository.list_universities(db)
    return [UniversityResponse.model_validate(u) for u in universities]


@router.get(
    "/universities/{university_id}",
    response_model=UniversityResponse,
    summary="Get University",
    responses={404: {"description": "University not found"}},
)
async def get_university(
    university_id: int,
    db: AsyncSession = Depends(get_db),
) -> UniversityResponse:
    university = await CatalogRepository.get_university(db, university_id)
    if university is None:
        raise NotFoundError("University", university_id)
    return UniversityResponse.model_validate(university)


@router.get("/programs", response_model=list[ProgramResponse], summary="List Programs")
async def list_programs(
    university_id: int | None = Query(None, alias="universityId"),
    degree: str | None = Query(None, max_length=100),
    study_field: str | None = Query(None, alias="studyField", max_length=100),
    search: str | None = Query(None, min_length=1, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> list[ProgramResponse]:
    programs = await CatalogRepository.list_programs(
        db,
        university_id=university_id,
        degree=degree,
        study_field=study_field,
        search=search,
    )
    return [ProgramResponse.model_validate(p) for p in programs]


@router.get(
    "/programs/{program_id}",
    response_model=ProgramWithUniversityResponse,
    summary="Get Program",
    responses={404: {"description": "Program not found"}},
)
async def get_program(
    program_id: int,
    db: AsyncSession = Depends(get_db),
) -> ProgramWithUniversityResponse:
    program = await CatalogRepository.get_program(db, program_id)
    if program is None:
        raise NotFoundError("Program", program_id)

    university = await CatalogRepository.get_university(db, program.university_id)
    response = ProgramWithUniversityResponse.model_validate(program)
    if university is not None:
        response.university = UniversityResponse.model_validate(university)
    return response
