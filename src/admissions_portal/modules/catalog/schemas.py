"""Catalog response schemas."""

from admissions_portal.core.schemas import APIModel


class UniversityResponse(APIModel):
    id: int
    name: str
    location: str
    image_url: str


class ProgramResponse(APIModel):
    id: int
    name: str
    university_id: int
    tuition: str
    duration: str
    intake: str
    degree: str
    study_field: str
    requirements: list
    has_scholarship: bool
    image_url: str


class ProgramWithUniversityResponse(ProgramResponse):
    university: UniversityResponse | None = None
