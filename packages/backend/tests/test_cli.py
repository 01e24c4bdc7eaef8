"""CLI tests — create-admin and users against the in-memory store.

Learn: The commands get their store from cli.main._repository(); the
tests swap that for a context manager yielding an in-memory store, so
no database is needed.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from click.testing import CliRunner

from userhub.cli import main as cli_main
from userhub.db.models import Role


@pytest.fixture()
def runner(repo, monkeypatch):
    @asynccontextmanager
    async def _repository():
        yield repo

    monkeypatch.setattr(cli_main, "_repository", _repository)
    return CliRunner()


def test_create_admin(runner, repo):
    result = runner.invoke(
        cli_main.main,
        ["create-admin", "--email", "Root@UserHub.com", "--password", "Adm1n!pass"],
    )
    assert result.exit_code == 0, result.output
    assert "Admin user created successfully!" in result.output
    assert "root@userhub.com" in result.output

    user = asyncio.run(repo.get_by_email("root@userhub.com"))
    assert user.role == Role.ADMIN
    assert user.full_name == "System Administrator"


def test_create_admin_twice_is_a_no_op(runner, repo):
    args = ["create-admin", "--password", "Adm1n!pass"]
    assert runner.invoke(cli_main.main, args).exit_code == 0

    result = runner.invoke(cli_main.main, args)
    assert result.exit_code == 0
    assert "Admin user already exists" in result.output
    assert asyncio.run(repo.count()) == 1


def test_create_admin_rejects_weak_password(runner, repo):
    result = runner.invoke(cli_main.main, ["create-admin", "--password", "weak"])
    assert result.exit_code == 1
    assert "Password must be at least 8 characters long" in result.output
    assert asyncio.run(repo.count()) == 0


@pytest.mark.parametrize("email", ["nope", "a..b@x.com", "a@-x-.com", "x" * 300 + "@x.com"])
def test_create_admin_rejects_bad_email(runner, repo, email):
    result = runner.invoke(
        cli_main.main, ["create-admin", "--email", email, "--password", "Adm1n!pass"]
    )
    assert result.exit_code == 1
    assert "Please provide a valid email address" in result.output
    assert asyncio.run(repo.count()) == 0


def test_users_lists_newest_first(runner, make_user):
    asyncio.run(make_user(email="first@example.com"))
    asyncio.run(make_user(email="second@example.com"))

    result = runner.invoke(cli_main.main, ["users", "--limit", "1"])
    assert result.exit_code == 0, result.output
    assert "second@example.com" in result.output
    assert "first@example.com" not in result.output
    assert "Page 1/2" in result.output
    assert "(more available)" in result.output


def test_users_empty(runner):
    result = runner.invoke(cli_main.main, ["users"])
    assert result.exit_code == 0
    assert "No users found." in result.output


def test_version(runner):
    result = runner.invoke(cli_main.main, ["--version"])
    assert result.exit_code == 0
    assert "userhub" in result.output
