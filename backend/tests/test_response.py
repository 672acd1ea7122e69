"""Tests for list response assembly."""

import itertools

import pytest

from accesshub.query import OutputFlags, assemble_list_response, build_pagination
from accesshub.query.response import PLACEHOLDER_MESSAGE, RESPONSE_SHAPES

RECORDS = [{"id": "1"}, {"id": "2"}]


@pytest.fixture
def role(metadata):
    return metadata.require_entity("Role")


def _assemble(role, documents=False, pagination=False, count=False, total=25):
    flags = OutputFlags(documents=documents, pagination=pagination, count=count)
    return assemble_list_response(role, flags, RECORDS if documents else None, total, 2, 10)


class TestPagination:
    def test_middle_page(self):
        assert build_pagination(25, 2, 10) == {
            "total": 25,
            "page": 2,
            "limit": 10,
            "totalPages": 3,
            "hasNext": True,
            "hasPrev": True,
        }

    def test_last_page(self):
        pagination = build_pagination(20, 2, 10)
        assert pagination["totalPages"] == 2
        assert pagination["hasNext"] is False

    def test_empty(self):
        pagination = build_pagination(0, 1, 10)
        assert pagination["totalPages"] == 0
        assert pagination["hasNext"] is False
        assert pagination["hasPrev"] is False


class TestShapes:
    def test_every_combination_has_a_shape(self):
        assert set(RESPONSE_SHAPES) == set(itertools.product([False, True], repeat=3))

    def test_placeholder(self, role):
        result = _assemble(role)
        assert result.message == "Role endpoint accessed successfully."
        assert result.data["message"] == PLACEHOLDER_MESSAGE
        assert set(result.data["sampleParameters"]) == {"document", "pagination", "count"}

    def test_documents_only(self, role):
        result = _assemble(role, documents=True)
        assert result.message == "Role documents retrieved successfully"
        assert result.data == {"roles": RECORDS}

    def test_count_only(self, role):
        result = _assemble(role, count=True)
        assert result.message == "Role count retrieved successfully"
        assert result.data == {"count": 25}

    def test_pagination_only(self, role):
        result = _assemble(role, pagination=True)
        assert result.message == "Role pagination retrieved successfully"
        assert result.data == {"pagination": build_pagination(25, 2, 10)}

    def test_documents_and_pagination(self, role):
        result = _assemble(role, documents=True, pagination=True)
        assert result.message == "Role documents and pagination retrieved successfully"
        assert set(result.data) == {"roles", "pagination"}

    def test_documents_and_count(self, role):
        result = _assemble(role, documents=True, count=True)
        assert result.message == "Role documents and count retrieved successfully"
        assert result.data == {"roles": RECORDS, "count": 25}

    def test_count_and_pagination(self, role):
        result = _assemble(role, count=True, pagination=True)
        assert result.message == "Role count and pagination retrieved successfully"
        assert set(result.data) == {"count", "pagination"}

    def test_everything(self, role):
        result = _assemble(role, documents=True, count=True, pagination=True)
        assert result.message == "Role documents, count, and pagination retrieved successfully"
        assert result.data == {
            "roles": RECORDS,
            "count": 25,
            "pagination": build_pagination(25, 2, 10),
        }

    def test_data_key_follows_entity(self, metadata):
        policy = metadata.require_entity("AccessPolicy")
        result = assemble_list_response(policy, OutputFlags(documents=True), [], None, 1, 10)
        assert result.data == {"accessPolicies": []}
