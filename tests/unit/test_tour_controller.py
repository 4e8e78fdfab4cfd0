"""
Unit tests for the tour controller.

Tests cover:
- Success status codes and envelopes per verb
- Failure status codes per verb (400 for create, 404 otherwise)
- Raw error objects carried in the fail envelope
- Error classification feeding status selection
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from api.src.controllers.tour_controller import FAILURE_STATUS, TourController
from api.src.errors import (
    ErrorKind,
    StorageError,
    TourNotFoundError,
    TourValidationError,
)


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.find_by_id = AsyncMock()
    repo.create = AsyncMock()
    repo.find_by_id_and_update = AsyncMock()
    repo.find_by_id_and_delete = AsyncMock()
    return repo


@pytest.fixture
def controller(repository):
    return TourController(repository, default_limit=100)


class TestGetAllTours:
    """Tests for the list verb."""

    @pytest.mark.asyncio
    async def test_returns_all_tours(self, controller):
        mock_tours = [{"name": "Tour 1"}, {"name": "Tour 2"}]

        with patch("api.src.controllers.tour_controller.execute", AsyncMock(return_value=mock_tours)):
            result = await controller.get_all_tours({})

        assert result.status_code == 200
        assert result.envelope.to_dict() == {
            "status": "success",
            "results": 2,
            "data": {"tours": mock_tours},
        }

    @pytest.mark.asyncio
    async def test_passes_plan_built_from_query(self, controller, repository):
        execute = AsyncMock(return_value=[])

        with patch("api.src.controllers.tour_controller.execute", execute):
            await controller.get_all_tours({"page": "2", "price": {"gte": "10"}})

        handle, plan = execute.await_args.args
        assert handle is repository
        assert plan.filter_expression == {"price": {"$gte": "10"}}
        assert plan.pagination.page == 2

    @pytest.mark.asyncio
    async def test_empty_result_is_success(self, controller):
        with patch("api.src.controllers.tour_controller.execute", AsyncMock(return_value=[])):
            result = await controller.get_all_tours({"name": "nothing"})

        assert result.status_code == 200
        assert result.envelope.results == 0

    @pytest.mark.asyncio
    async def test_handles_errors(self, controller):
        error = Exception("Error fetching tours")

        with patch("api.src.controllers.tour_controller.execute", AsyncMock(side_effect=error)):
            result = await controller.get_all_tours({})

        assert result.status_code == 404
        assert result.envelope.status == "fail"
        assert result.envelope.message is error

    @pytest.mark.asyncio
    async def test_storage_error_maps_to_404(self, controller):
        error = StorageError("connection refused")

        with patch("api.src.controllers.tour_controller.execute", AsyncMock(side_effect=error)):
            result = await controller.get_all_tours({})

        assert result.status_code == 404
        assert result.envelope.to_dict() == {
            "status": "fail",
            "message": {"name": "StorageError", "message": "connection refused"},
        }


class TestGetTour:
    """Tests for the getOne verb."""

    @pytest.mark.asyncio
    async def test_returns_single_tour(self, controller, repository):
        mock_tour = {"name": "Tour 1"}
        repository.find_by_id.return_value = mock_tour

        result = await controller.get_tour("1")

        repository.find_by_id.assert_awaited_once_with("1")
        assert result.status_code == 200
        assert result.envelope.to_dict() == {"status": "success", "data": {"tour": mock_tour}}

    @pytest.mark.asyncio
    async def test_missing_tour_is_null(self, controller, repository):
        repository.find_by_id.return_value = None

        result = await controller.get_tour("65f1c0ffee0000000000abcd")

        assert result.status_code == 200
        assert result.envelope.data == {"tour": None}

    @pytest.mark.asyncio
    async def test_handles_errors(self, controller, repository):
        error = Exception("Error fetching tour")
        repository.find_by_id.side_effect = error

        result = await controller.get_tour("1")

        assert result.status_code == 404
        assert result.envelope.status == "fail"
        assert result.envelope.message is error

    @pytest.mark.asyncio
    async def test_invalid_id_maps_to_404(self, controller, repository):
        repository.find_by_id.side_effect = TourNotFoundError("1")

        result = await controller.get_tour("1")

        assert result.status_code == 404
        assert result.envelope.to_dict()["message"]["name"] == "CastError"


class TestCreateTour:
    """Tests for the create verb."""

    @pytest.mark.asyncio
    async def test_creates_new_tour(self, controller, repository):
        mock_tour = {"name": "New Tour"}
        repository.create.return_value = mock_tour

        result = await controller.create_tour(mock_tour)

        repository.create.assert_awaited_once_with(mock_tour)
        assert result.status_code == 201
        assert result.envelope.to_dict() == {"status": "success", "data": {"tour": mock_tour}}

    @pytest.mark.asyncio
    async def test_handles_errors(self, controller, repository):
        error = Exception("Error creating tour")
        repository.create.side_effect = error

        result = await controller.create_tour({"name": "New Tour"})

        assert result.status_code == 400
        assert result.envelope.status == "fail"
        assert result.envelope.message is error

    @pytest.mark.asyncio
    async def test_validation_error_maps_to_400(self, controller, repository):
        error = TourValidationError({
            "difficulty": {"message": "Field required", "kind": "missing", "path": "difficulty", "value": None},
            "price": {"message": "Field required", "kind": "missing", "path": "price", "value": None},
        })
        repository.create.side_effect = error

        result = await controller.create_tour({"name": "The Snow Adventurer"})

        assert result.status_code == 400
        body = result.envelope.to_dict()
        assert body["status"] == "fail"
        assert body["message"]["name"] == "ValidationError"
        assert set(body["message"]["errors"]) == {"difficulty", "price"}


class TestUpdateTour:
    """Tests for the update verb."""

    @pytest.mark.asyncio
    async def test_updates_tour(self, controller, repository):
        mock_tour = {"name": "Updated Tour"}
        repository.find_by_id_and_update.return_value = mock_tour

        result = await controller.update_tour("1", mock_tour)

        repository.find_by_id_and_update.assert_awaited_once_with("1", mock_tour)
        assert result.status_code == 200
        assert result.envelope.to_dict() == {"status": "success", "data": {"tour": mock_tour}}

    @pytest.mark.asyncio
    async def test_handles_errors(self, controller, repository):
        error = Exception("Error updating tour")
        repository.find_by_id_and_update.side_effect = error

        result = await controller.update_tour("1", {"name": "Updated Tour"})

        assert result.status_code == 404
        assert result.envelope.status == "fail"
        assert result.envelope.message is error

    @pytest.mark.asyncio
    async def test_validation_error_on_update_maps_to_404(self, controller, repository):
        repository.find_by_id_and_update.side_effect = TourValidationError({
            "difficulty": {"message": "bad", "kind": "enum", "path": "difficulty", "value": "extreme"},
        })

        result = await controller.update_tour("1", {"difficulty": "extreme"})

        assert result.status_code == 404


class TestDeleteTour:
    """Tests for the delete verb."""

    @pytest.mark.asyncio
    async def test_deletes_tour(self, controller, repository):
        repository.find_by_id_and_delete.return_value = None

        result = await controller.delete_tour("1")

        repository.find_by_id_and_delete.assert_awaited_once_with("1")
        assert result.status_code == 204
        assert result.envelope.to_dict() == {"status": "success", "data": None}

    @pytest.mark.asyncio
    async def test_handles_errors(self, controller, repository):
        error = Exception("Error deleting tour")
        repository.find_by_id_and_delete.side_effect = error

        result = await controller.delete_tour("1")

        assert result.status_code == 404
        assert result.envelope.status == "fail"
        assert result.envelope.message is error


class TestFailureStatusTable:
    """Tests for the per-verb failure status table."""

    def test_every_verb_covers_every_kind(self):
        for verb, table in FAILURE_STATUS.items():
            assert set(table) == set(ErrorKind), verb

    def test_create_failures_are_bad_requests(self):
        assert set(FAILURE_STATUS["create"].values()) == {400}

    @pytest.mark.parametrize("verb", ["list", "get", "update", "delete"])
    def test_other_failures_are_not_found(self, verb):
        assert set(FAILURE_STATUS[verb].values()) == {404}
