"""Tests for the bookswap command-line interface."""

import pytest

from bookswap.cli import main
from bookswap.cli._routes import describe_params, handler_name
from bookswap.routing.router import Router


def _write_config(tmp_path, **extra: str) -> str:
    lines = [
        f'db_url = "sqlite:///{(tmp_path / "cli.db").as_posix()}"',
        f'template_dir = "{tmp_path.as_posix()}"',
        f'static_dir = "{tmp_path.as_posix()}"',
    ]
    lines.extend(f'{key} = "{value}"' for key, value in extra.items())
    path = tmp_path / "bookswap.toml"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


class TestMain:
    def test_no_command_prints_help(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "routes" in capsys.readouterr().out

    def test_unknown_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["serve-forever"])
        assert exc_info.value.code == 2


class TestRoutesCommand:
    def test_lists_exchange_routes(self, tmp_path, capsys) -> None:
        main(["routes", "--config", _write_config(tmp_path)])
        out = capsys.readouterr().out
        assert out.splitlines()[0].split() == ["PATH", "PARAMS", "HANDLER"]
        assert "/profile/{id:int}" in out
        assert "id:int" in out
        assert "UserController@profile" in out
        assert "HomeController@index" in out

    def test_bad_config(self, tmp_path, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "--config", str(tmp_path / "missing.toml")])
        assert exc_info.value.code == 1
        assert "Error: Configuration file not found" in capsys.readouterr().err

    def test_handler_name(self) -> None:
        class PageController:
            def show(self) -> None: ...

        def plain() -> None: ...

        assert handler_name(PageController().show) == "PageController@show"
        assert handler_name(plain).endswith("plain")

    def test_describe_params(self) -> None:
        router = Router()
        route = router.add_route("/users/{user}/books/{id:int}", lambda user, id: "")
        assert describe_params(route) == "user:str, id:int"


class TestCheckCommand:
    def test_ok(self, tmp_path, capsys) -> None:
        main(["check", "--config", _write_config(tmp_path)])
        assert capsys.readouterr().out.strip() == "OK: 5 routes, 1 migrations"

    def test_reports_problems(self, tmp_path, capsys) -> None:
        config = _write_config(
            tmp_path,
            routes_file=(tmp_path / "routes.toml").as_posix(),
            migrations_dir=(tmp_path / "none").as_posix(),
        )
        (tmp_path / "routes.toml").write_text('[routes]\n"/" = "GhostController@index"\n')
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--config", config])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "routes: Unknown controller 'GhostController'" in err
        assert "migrations: Migration directory does not exist" in err

    def test_missing_static_dir(self, tmp_path, capsys) -> None:
        path = tmp_path / "bookswap.toml"
        path.write_text(
            f'db_url = "sqlite:///{(tmp_path / "cli.db").as_posix()}"\n'
            f'template_dir = "{tmp_path.as_posix()}"\n'
            f'static_dir = "{(tmp_path / "public").as_posix()}"\n'
        )
        with pytest.raises(SystemExit):
            main(["check", "--config", str(path)])
        assert "static: directory not found" in capsys.readouterr().err

    def test_invalid_config(self, tmp_path, capsys) -> None:
        path = tmp_path / "bookswap.toml"
        path.write_text("colour = 'red'\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["check", "--config", str(path)])
        assert exc_info.value.code == 1
        assert "config:" in capsys.readouterr().err


class TestMigrateCommand:
    def test_applies_then_noop(self, tmp_path, capsys) -> None:
        config = _write_config(tmp_path)
        main(["migrate", "--config", config])
        assert capsys.readouterr().out.strip() == "Applied 1 migration(s): 001_initial"
        main(["migrate", "--config", config])
        assert capsys.readouterr().out.strip() == "Already up to date (1 migrations applied)"

    def test_failure_exits_1(self, tmp_path, capsys) -> None:
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "001_broken.sql").write_text("CREATE TABLE;")
        config = _write_config(tmp_path, migrations_dir=migrations.as_posix())
        with pytest.raises(SystemExit) as exc_info:
            main(["migrate", "--config", config])
        assert exc_info.value.code == 1
        assert "Error: Migration 001_broken failed" in capsys.readouterr().err
