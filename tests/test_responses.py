"""
FarmStaff - Response Envelope Tests
"""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

from farmstaff.models.staff import StaffRole
from farmstaff.schemas.common import Pagination, StaffSummary
from farmstaff.utils.error_handling import OverlappingRequestException, StaffNotFoundException
from farmstaff.utils.responses import envelope_response, run_operation


async def _value(value):
    return value


async def _raise(exc):
    raise exc


class TestRunOperation:

    @pytest.mark.asyncio
    async def test_success_envelope(self, db_session):
        envelope, status_code = await run_operation(
            db_session,
            _value({"id": 1}),
            failure_message="Failed",
            success_message="Done",
        )

        assert status_code == 200
        assert envelope.success is True
        assert envelope.data == {"id": 1}
        assert envelope.message == "Done"
        assert envelope.code is None

    @pytest.mark.asyncio
    async def test_app_exception_becomes_failure(self, db_session):
        envelope, status_code = await run_operation(
            db_session,
            _raise(OverlappingRequestException(uuid.uuid4())),
            failure_message="Failed to create leave request",
        )

        assert status_code == 409
        assert envelope.success is False
        assert envelope.code == "OVERLAPPING_REQUEST"
        assert envelope.message == "You already have a leave request for this period"

    @pytest.mark.asyncio
    async def test_not_found_status(self, db_session):
        envelope, status_code = await run_operation(
            db_session, _raise(StaffNotFoundException(uuid.uuid4())), failure_message="Failed"
        )

        assert status_code == 404
        assert envelope.code == "STAFF_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_database_error_uses_failure_message(self, db_session):
        envelope, status_code = await run_operation(
            db_session,
            _raise(OperationalError("SELECT 1", {}, Exception("connection lost"))),
            failure_message="Failed to fetch staff",
        )

        assert status_code == 500
        assert envelope.message == "Failed to fetch staff"
        assert envelope.code == "CONNECTION_ERROR"

    @pytest.mark.asyncio
    async def test_unexpected_error(self, db_session):
        envelope, status_code = await run_operation(
            db_session, _raise(RuntimeError("boom")), failure_message="Failed"
        )

        assert status_code == 500
        assert envelope.code == "INTERNAL_ERROR"
        assert "boom" not in envelope.message

    @pytest.mark.asyncio
    async def test_paginated_envelope(self, db_session):
        rows = [
            {"id": uuid.uuid4(), "name": "Ada Okafor", "email": None, "role": StaffRole.ADMIN},
            {"id": uuid.uuid4(), "name": "Wale Adeyemi", "email": None, "role": StaffRole.WORKER},
        ]
        envelope, _ = await run_operation(
            db_session,
            _value((rows, 21)),
            failure_message="Failed",
            serializer=StaffSummary,
            page=2,
            limit=10,
        )

        assert all(isinstance(item, StaffSummary) for item in envelope.data)
        assert envelope.pagination.total_pages == 3

        body = envelope_response(envelope).body
        assert b'"totalPages":3' in body
        assert b'"code"' not in body


class TestPagination:

    def test_total_pages(self):
        assert Pagination.build(1, 10, 0).total_pages == 0
        assert Pagination.build(1, 10, 10).total_pages == 1
        assert Pagination.build(1, 10, 11).total_pages == 2
