"""HTTP tests for the public university and program catalog."""

import pytest

from admissions_portal.modules.catalog.models import Program


@pytest.fixture
async def second_program(app, program) -> Program:
    async with app.state.context.database.session() as db:
        other = Program(
            name="BBA Finance",
            university_id=program.university_id,
            tuition="AED 60,000",
            duration="4 years",
            intake="January",
            degree="Bachelors",
            study_field="Business",
            requirements=[],
            has_scholarship=False,
            image_url="",
        )
        db.add(other)
        await db.commit()
        return other


class TestUniversities:
    @pytest.mark.asyncio
    async def test_list_is_public(self, client, program):
        response = await client.get("/api/universities")

        assert response.status_code == 200
        [university] = response.json()
        assert university["name"] == "Khalifa University"
        assert university["location"] == "Abu Dhabi"

    @pytest.mark.asyncio
    async def test_missing_university(self, client):
        response = await client.get("/api/universities/9999")

        assert response.status_code == 404
        assert response.json()["error"] == "UNIVERSITY_NOT_FOUND"


class TestPrograms:
    @pytest.mark.asyncio
    async def test_list_sorted_by_name(self, client, program, second_program):
        response = await client.get("/api/programs")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["BBA Finance", "MSc Data Science"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params,expected",
        [
            ({"degree": "Masters"}, ["MSc Data Science"]),
            ({"studyField": "Business"}, ["BBA Finance"]),
            ({"search": "data"}, ["MSc Data Science"]),
            ({"search": "BUSINESS"}, ["BBA Finance"]),
            ({"degree": "Doctorate"}, []),
        ],
    )
    async def test_filters(self, client, program, second_program, params, expected):
        response = await client.get("/api/programs", params=params)

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == expected

    @pytest.mark.asyncio
    async def test_filter_by_university(self, client, program, second_program):
        response = await client.get(
            "/api/programs", params={"universityId": program.university_id}
        )
        assert len(response.json()) == 2

        response = await client.get("/api/programs", params={"universityId": 9999})
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_program_detail_includes_university(self, client, program):
        response = await client.get(f"/api/programs/{program.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["requirements"] == ["Bachelor's degree", "IELTS 6.5"]
        assert body["hasScholarship"] is True
        assert body["university"]["name"] == "Khalifa University"

    @pytest.mark.asyncio
    async def test_missing_program(self, client):
        response = await client.get("/api/programs/9999")

        assert response.status_code == 404
        assert response.json()["error"] == "PROGRAM_NOT_FOUND"
