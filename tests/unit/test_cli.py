"""Unit tests for the breadbase command line."""

from click.testing import CliRunner

from breadbase.cli import cli
from breadbase.infrastructure.auth import jwt_service


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_create_token_grants_permissions():
    result = CliRunner().invoke(
        cli, ["create-token", "--user-id", "ops", "--permission", "browse_database", "--permission", "*"]
    )

    assert result.exit_code == 0
    claims = jwt_service.validate_access_token(result.output.strip())
    assert claims["user_id"] == "ops"
    assert claims["permissions"] == ["*", "browse_database"]


def test_create_token_default_permission():
    result = CliRunner().invoke(cli, ["create-token"])

    claims = jwt_service.validate_access_token(result.output.strip())
    assert claims["permissions"] == ["browse_database"]
