"""Tests for AccessHub CLI commands."""

import json

import pytest
from click.testing import CliRunner

from accesshub.cli.main import cli


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("ACCESSHUB_METADATA_PATH", raising=False)
    return CliRunner()


@pytest.fixture
def broken_definitions(tmp_path):
    (tmp_path / "entities").mkdir()
    (tmp_path / "types").mkdir()
    (tmp_path / "entities" / "widget.yaml").write_text(
        "entity: Widget\nfields:\n  owner: {relation: Owner}\n"
    )
    return tmp_path


class TestMetadataValidate:
    def test_validate_succeeds(self, runner):
        result = runner.invoke(cli, ["metadata", "validate"])
        assert result.exit_code == 0
        assert "Loaded 9 entities:" in result.output
        assert "All metadata is valid" in result.output

    def test_validate_shows_entities(self, runner):
        result = runner.invoke(cli, ["metadata", "validate"])
        assert "✓ AccessPolicy" in result.output
        assert "✓ User (" in result.output

    def test_validate_reports_broken_definitions(self, runner, broken_definitions):
        result = runner.invoke(cli, ["metadata", "validate", "--path", str(broken_definitions)])
        assert result.exit_code == 1
        assert "Metadata is invalid" in result.output
        assert "unknown entity 'Owner'" in result.output


class TestMetadataShow:
    def test_show_entity(self, runner):
        result = runner.invoke(cli, ["metadata", "show", "User"])
        assert result.exit_code == 0
        assert "User (User, data key: users)" in result.output
        assert "resource:    user" in result.output
        assert "unique:      email" in result.output
        assert "password: String (hidden)" in result.output
        assert "person: relation Person (personId -> id)" in result.output
        assert "roles: relation UserRole[] (id -> userId)" in result.output

    def test_show_composites_and_enums(self, runner):
        result = runner.invoke(cli, ["metadata", "show", "Person"])
        assert "contactInfo: composite ContactInfo" in result.output
        assert "gender: enum Gender" in result.output
        assert "tags: String[]" in result.output

    def test_show_join_entity(self, runner):
        result = runner.invoke(cli, ["metadata", "show", "UserRole"])
        assert "soft delete: no" in result.output

    def test_unknown_entity(self, runner):
        result = runner.invoke(cli, ["metadata", "show", "Planet"])
        assert result.exit_code == 1
        assert "unknown entity 'Planet'" in result.output


class TestQueryCompile:
    def test_compile_filter_and_selection(self, runner):
        result = runner.invoke(
            cli,
            [
                "query", "compile", "User",
                "--filter", "status:active,person.lastName:Lee",
                "--fields", "userName,person.firstName",
                "--sort", "userName",
                "--order", "asc",
            ],
        )
        assert result.exit_code == 0
        compiled = json.loads(result.output)
        assert compiled["where"] == {
            "AND": [
                {"deletedAt": None},
                {"AND": [{"status": "active"}, {"person": {"is": {"lastName": "Lee"}}}]},
            ]
        }
        assert compiled["select"] == {
            "id": True,
            "userName": True,
            "person": {"select": {"firstName": True}},
        }
        assert compiled["orderBy"] == {"userName": "asc"}
        assert compiled["compositePaths"] == []

    def test_compile_composite_path(self, runner):
        result = runner.invoke(
            cli, ["query", "compile", "Person", "--fields", "contactInfo.address.city"]
        )
        compiled = json.loads(result.output)
        assert compiled["select"] == {"id": True, "contactInfo": True}
        assert compiled["compositePaths"] == ["contactInfo.address.city"]
        assert compiled["orderBy"] == {"id": "desc"}

    def test_compile_without_soft_delete(self, runner):
        result = runner.invoke(cli, ["query", "compile", "UserRole", "--filter", "userId:u1"])
        assert json.loads(result.output)["where"] == {"userId": "u1"}

    def test_invalid_parameters(self, runner):
        result = runner.invoke(cli, ["query", "compile", "User", "--order", "up"])
        assert result.exit_code == 1
        assert "Invalid parameters" in result.output

    def test_unknown_entity(self, runner):
        result = runner.invoke(cli, ["query", "compile", "Planet"])
        assert result.exit_code == 1


class TestHashPassword:
    def test_prints_argon2_hash(self, runner):
        result = runner.invoke(cli, ["hash-password"], input="s3cret\ns3cret\n")
        assert result.exit_code == 0
        assert "$argon2" in result.output
