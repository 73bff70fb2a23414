"""Tests for the cellarbook-admin command line tool."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from cellarbook.cli import admin
from cellarbook.models import User
from cellarbook.services.auth import verify_password


class TestParser:
    """Tests for argument parsing."""

    def test_user_add(self):
        args = admin.build_parser().parse_args(
            ["user", "add", "a@example.com", "--admin", "-p", "pw"]
        )
        assert args.group == "user"
        assert args.command == "add"
        assert args.email == "a@example.com"
        assert args.admin is True
        assert args.password == "pw"

    def test_catalog_refresh_source(self):
        args = admin.build_parser().parse_args(["catalog", "refresh", "--source", "x.csv"])
        assert args.group == "catalog"
        assert args.command == "refresh"
        assert args.source == "x.csv"

    def test_main_without_command_prints_help(self, capsys):
        assert admin.main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_main_runs_command(self):
        with patch.object(admin, "run_command", new=AsyncMock()) as run:
            assert admin.main(["catalog", "stats"]) == 0
        run.assert_awaited_once()


class TestUserCommands:
    """Tests for user management commands."""

    @pytest.mark.asyncio
    async def test_add_user(self, init_test_db, capsys):
        await admin.add_user("new@example.com", "pw123", "New User", is_admin=True)

        user = await User.find_one(User.email == "new@example.com")
        assert user.is_admin
        assert user.full_name == "New User"
        assert verify_password("pw123", user.hashed_password)
        assert "created successfully as admin" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_add_duplicate_user_exits(self, owner: User):
        with pytest.raises(SystemExit):
            await admin.add_user(owner.email, "pw")

    @pytest.mark.asyncio
    async def test_disable_and_enable(self, owner: User):
        await admin.set_user_active(owner.email, False)
        assert (await User.get(owner.id)).is_active is False

        await admin.set_user_active(owner.email, True)
        assert (await User.get(owner.id)).is_active is True

    @pytest.mark.asyncio
    async def test_change_password(self, owner: User):
        await admin.change_password(owner.email, "changed")
        assert verify_password("changed", (await User.get(owner.id)).hashed_password)

    @pytest.mark.asyncio
    async def test_unknown_user_exits(self, init_test_db):
        with pytest.raises(SystemExit):
            await admin.change_password("ghost@example.com", "pw")

    @pytest.mark.asyncio
    async def test_list_users(self, owner: User, capsys):
        await admin.list_users()
        assert owner.email in capsys.readouterr().out


class TestCatalogCommands:
    """Tests for catalog commands."""

    @pytest.mark.asyncio
    async def test_refresh_and_stats(self, init_test_db, tmp_path: Path, capsys):
        source = tmp_path / "catalog.csv"
        source.write_text(
            "name,category,producer,region,country\nRioja Reserva,Red,Muga,Rioja,Spain\n",
            encoding="utf-8",
        )

        await admin.refresh_catalog(str(source))
        assert "1 entries, 0 skipped" in capsys.readouterr().out

        await admin.catalog_stats()
        assert "Entries:     1" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_stats_before_refresh(self, init_test_db, capsys):
        await admin.catalog_stats()
        assert "not been loaded" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_refresh_unreadable_source_exits(self, init_test_db, tmp_path: Path):
        with pytest.raises(SystemExit):
            await admin.refresh_catalog(str(tmp_path))
