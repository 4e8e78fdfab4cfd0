"""
Integration tests for the tour repository against a real MongoDB.

Tests cover:
- Creating and reading back tours
- Schema validation failures (required fields, difficulty, discount)
- Query-string filters executed through the query pipeline
- Sorting, field selection and pagination
- Updates and idempotent deletes

These tests use testcontainers to spin up a MongoDB instance.
"""

import pytest
import pytest_asyncio
from bson import ObjectId
from pymongo import AsyncMongoClient

from api.src.controllers.tour_controller import TourController
from api.src.errors import StorageError, TourValidationError
from api.src.repositories.tour_repo import TourRepository
from api.src.services.query_builder import build_plan, parse_query_string
from api.src.services.query_executor import execute
from tests.testcontainers.containers import MongoDBContainer

pytestmark = pytest.mark.integration


TOURS = [
    {"name": "The Forest Hiker", "duration": 5, "maxGroupSize": 25, "difficulty": "easy",
     "ratingsAverage": 4.7, "price": 397, "startDates": ["2021-04-25", "2021-07-20"]},
    {"name": "The Sea Explorer", "duration": 7, "maxGroupSize": 15, "difficulty": "medium",
     "ratingsAverage": 4.8, "price": 497, "startDates": ["2021-06-19"]},
    {"name": "The Snow Adventurer", "duration": 4, "maxGroupSize": 10, "difficulty": "difficult",
     "ratingsAverage": 4.5, "price": 997, "startDates": ["2022-01-05"]},
    {"name": "The City Wanderer", "duration": 9, "maxGroupSize": 20, "difficulty": "easy",
     "ratingsAverage": 4.6, "price": 1197, "startDates": ["2021-03-11"]},
]


@pytest.fixture(scope="module")
def mongodb_container():
    """Start MongoDB container."""
    container = MongoDBContainer()
    container.start()
    yield container
    container.stop()


@pytest_asyncio.fixture
async def repository(mongodb_container):
    """Repository over a fresh tours collection."""
    client = AsyncMongoClient(mongodb_container.get_connection_url())
    repository = TourRepository(client["tours_test"]["tours"])
    await repository.ensure_indexes()
    yield repository
    await client.drop_database("tours_test")
    await client.close()


@pytest_asyncio.fixture
async def seeded(repository):
    for tour in TOURS:
        await repository.create(tour)
    return repository


class TestCreateAndRead:
    """Tests for writing and reading single tours."""

    @pytest.mark.asyncio
    async def test_create_and_find_by_id(self, repository):
        created = await repository.create({
            **TOURS[0],
            "summary": "Breathtaking hike through the Canadian Banff National Park",
        })

        found = await repository.find_by_id(created["id"])

        assert found["name"] == "The Forest Hiker"
        assert found["difficulty"] == "easy"
        assert found["durationWeeks"] == pytest.approx(5 / 7)
        assert "createdAt" not in found

    @pytest.mark.asyncio
    async def test_unknown_field_is_not_stored(self, repository):
        created = await repository.create({**TOURS[1], "invalidField": "not in schema"})

        found = await repository.find_by_id(created["id"])

        assert "invalidField" not in found

    @pytest.mark.asyncio
    async def test_missing_required_fields(self, repository):
        with pytest.raises(TourValidationError) as exc_info:
            await repository.create({"name": "The Snow Adventurer"})

        assert "difficulty" in exc_info.value.errors
        assert "price" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_invalid_difficulty(self, repository):
        with pytest.raises(TourValidationError) as exc_info:
            await repository.create({**TOURS[2], "difficulty": "extreme"})

        assert "difficulty" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_discount_above_price(self, repository):
        with pytest.raises(TourValidationError) as exc_info:
            await repository.create({**TOURS[2], "price": 1997, "priceDiscount": 2000})

        assert "priceDiscount" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_duplicate_name(self, repository):
        await repository.create(TOURS[0])

        with pytest.raises(StorageError):
            await repository.create(TOURS[0])

    @pytest.mark.asyncio
    async def test_find_missing_id_is_none(self, repository):
        assert await repository.find_by_id(str(ObjectId())) is None


class TestQueryPipeline:
    """Tests for list queries built from query strings."""

    async def run(self, repository, pairs):
        return await execute(repository, build_plan(parse_query_string(pairs)))

    @pytest.mark.asyncio
    async def test_equality_and_comparison_filters(self, seeded):
        tours = await self.run(seeded, [("difficulty", "easy"), ("price[lt]", "1000")])

        assert [tour["name"] for tour in tours] == ["The Forest Hiker"]

    @pytest.mark.asyncio
    async def test_range_filter_with_control_keys(self, seeded):
        tours = await self.run(seeded, [
            ("price[gte]", "400"),
            ("price[lte]", "1000"),
            ("sort", "-price"),
            ("fields", "name,price"),
        ])

        assert [tour["name"] for tour in tours] == ["The Snow Adventurer", "The Sea Explorer"]
        assert set(tours[0]) == {"_id", "id", "name", "price"}

    @pytest.mark.asyncio
    async def test_date_filter(self, seeded):
        tours = await self.run(seeded, [("startDates[gte]", "2022-01-01")])

        assert [tour["name"] for tour in tours] == ["The Snow Adventurer"]

    @pytest.mark.asyncio
    async def test_pagination(self, seeded):
        first = await self.run(seeded, [("sort", "price"), ("limit", "3"), ("page", "1")])
        second = await self.run(seeded, [("sort", "price"), ("limit", "3"), ("page", "2")])

        assert [tour["price"] for tour in first] == [397, 497, 997]
        assert [tour["price"] for tour in second] == [1197]

    @pytest.mark.asyncio
    async def test_no_match_is_empty(self, seeded):
        assert await self.run(seeded, [("difficulty", "medium"), ("duration[gt]", "100")]) == []

    @pytest.mark.asyncio
    async def test_uncastable_value_fails(self, seeded):
        with pytest.raises(StorageError):
            await self.run(seeded, [("price[gte]", "cheap")])


class TestControllerAgainstMongo:
    """End-to-end controller verbs over a real collection."""

    @pytest.mark.asyncio
    async def test_crud_cycle(self, repository):
        controller = TourController(repository)

        created = await controller.create_tour(TOURS[3])
        assert created.status_code == 201
        tour_id = created.envelope.data["tour"]["id"]

        updated = await controller.update_tour(tour_id, {"price": 999})
        assert updated.status_code == 200
        assert updated.envelope.data["tour"]["price"] == 999

        listed = await controller.get_all_tours({"price": {"lte": "999"}})
        assert listed.envelope.results == 1

        deleted = await controller.delete_tour(tour_id)
        assert deleted.status_code == 204
        assert deleted.envelope.data is None

        again = await controller.delete_tour(tour_id)
        assert again.status_code == 204

        gone = await controller.get_tour(tour_id)
        assert gone.envelope.data == {"tour": None}

    @pytest.mark.asyncio
    async def test_create_failure_is_400(self, repository):
        result = await controller_for(repository).create_tour({"name": "The Snow Adventurer"})

        assert result.status_code == 400
        assert isinstance(result.envelope.message, TourValidationError)

    @pytest.mark.asyncio
    async def test_invalid_id_is_404(self, repository):
        result = await controller_for(repository).get_tour("not-an-object-id")

        assert result.status_code == 404


def controller_for(repository):
    return TourController(repository)
