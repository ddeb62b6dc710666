"""End-to-end tests: App through TestClient (ASGI pipeline, no sockets)."""

import logging

import pytest

from bookswap import App, AppConfig, NotFound, get_request
from bookswap.errors import ConfigurationError, HTTPError
from bookswap.server.errors import GENERIC_ERROR_MESSAGE
from bookswap.testing import TestClient


def _app(tmp_path, **overrides) -> App:
    values = {
        "db_url": f"sqlite:///{tmp_path / 'app.db'}",
        "static_dir": tmp_path,
        "template_dir": tmp_path,
        **overrides,
    }
    return App(AppConfig(**values))


class TestRouting:
    async def test_literal_and_dynamic(self, tmp_path) -> None:
        app = _app(tmp_path)

        @app.route("/")
        def home():
            return "home"

        @app.route("/books/{id:int}")
        async def book(id: int):
            return f"book {id + 1}"

        async with TestClient(app) as client:
            assert (await client.get("/")).text == "home"
            response = await client.get("/books/41")
            assert response.status == 200
            assert response.text == "book 42"
            assert "text/html" in response.content_type

    async def test_unmatched_is_404(self, tmp_path) -> None:
        app = _app(tmp_path)
        async with TestClient(app) as client:
            response = await client.get("/nowhere")
        assert response.status == 404
        assert response.text == "404 - Page not found"

    async def test_bad_integer_is_404(self, tmp_path) -> None:
        app = _app(tmp_path)
        app.add_route("/books/{id:int}", lambda id: "x")
        async with TestClient(app) as client:
            assert (await client.get("/books/abc")).status == 404

    async def test_explicit_param_types(self, tmp_path) -> None:
        app = _app(tmp_path)

        @app.route("/books/{id}", params={"id": int})
        def book(id: int):
            return type(id).__name__

        async with TestClient(app) as client:
            assert (await client.get("/books/7")).text == "int"

    async def test_load_routes_mapping(self, tmp_path) -> None:
        class Pages:
            def about(self) -> str:
                return "about"

        app = _app(tmp_path)
        assert app.load_routes({"/about": "Pages@about"}, controllers={"Pages": Pages}) == 1
        async with TestClient(app) as client:
            assert (await client.get("/about/")).text == "about"

    async def test_router_frozen_after_start(self, tmp_path) -> None:
        app = _app(tmp_path)
        async with TestClient(app):
            with pytest.raises(ConfigurationError, match="frozen"):
                app.add_route("/late", lambda: "late")

    async def test_head_has_no_body(self, tmp_path) -> None:
        app = _app(tmp_path)
        app.add_route("/", lambda: "home")
        async with TestClient(app) as client:
            response = await client.head("/")
        assert response.status == 200
        assert response.body == b""

    async def test_static_asset(self, tmp_path) -> None:
        (tmp_path / "css").mkdir()
        (tmp_path / "css" / "main.css").write_text("h1 {}")
        app = _app(tmp_path)
        async with TestClient(app) as client:
            response = await client.get("/public/css/main.css")
        assert response.status == 200
        assert response.content_type == "text/css"
        assert response.text == "h1 {}"


class TestRequestContext:
    async def test_get_request_inside_handler(self, tmp_path) -> None:
        app = _app(tmp_path)

        @app.route("/search")
        def search():
            return get_request().query.get("q", "")

        async with TestClient(app) as client:
            assert (await client.get("/search?q=dune")).text == "dune"

    def test_outside_request(self) -> None:
        with pytest.raises(LookupError):
            get_request()


class TestErrors:
    async def test_http_error_from_handler(self, tmp_path) -> None:
        app = _app(tmp_path)

        @app.route("/books/{id:int}")
        def book(id: int):
            raise NotFound("Livre introuvable")

        @app.route("/private")
        def private():
            raise HTTPError(status=403, detail="Interdit")

        async with TestClient(app) as client:
            missing = await client.get("/books/9")
            forbidden = await client.get("/private")
        assert (missing.status, missing.text) == (404, "Livre introuvable")
        assert (forbidden.status, forbidden.text) == (403, "Interdit")

    async def test_generic_500(self, tmp_path) -> None:
        app = _app(tmp_path)

        @app.route("/boom")
        def boom():
            raise RuntimeError("secret detail")

        async with TestClient(app) as client:
            response = await client.get("/boom")
        assert response.status == 500
        assert response.text == GENERIC_ERROR_MESSAGE

    async def test_debug_500(self, tmp_path) -> None:
        app = _app(tmp_path, debug=True)

        @app.route("/boom")
        def boom():
            raise RuntimeError("secret detail")

        async with TestClient(app) as client:
            response = await client.get("/boom")
        assert response.status == 500
        assert "RuntimeError: secret detail" in response.text
        assert "GET /boom" in response.text

    async def test_error_log_file(self, tmp_path) -> None:
        log_file = tmp_path / "errors.log"
        app = _app(tmp_path, error_log=log_file)

        @app.route("/boom")
        def boom():
            raise RuntimeError("written to the log")

        async with TestClient(app) as client:
            await client.get("/boom")
        content = log_file.read_text()
        assert "ERROR bookswap.server: 500 GET /boom" in content
        assert "RuntimeError: written to the log" in content
        assert not any(
            isinstance(h, logging.FileHandler) for h in logging.getLogger("bookswap.server").handlers
        )

    async def test_no_error_log_in_debug(self, tmp_path) -> None:
        log_file = tmp_path / "errors.log"
        app = _app(tmp_path, debug=True, error_log=log_file)
        app.add_route("/boom", lambda: 1 / 0)
        async with TestClient(app) as client:
            await client.get("/boom")
        assert not log_file.exists()


class TestLifecycle:
    async def test_hooks_and_db(self, tmp_path) -> None:
        app = _app(tmp_path)
        events: list[str] = []

        @app.on_startup
        async def started():
            events.append(f"start connected={app.db.connected}")

        @app.on_shutdown
        def stopped():
            events.append("stop")

        async with TestClient(app):
            pass
        assert events == ["start connected=True", "stop"]
        assert not app.db.connected

    async def test_migrations_run_at_startup(self, tmp_path) -> None:
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "001_tag.sql").write_text("CREATE TABLE tag (id INTEGER PRIMARY KEY);")
        app = _app(tmp_path, migrations_dir=migrations)

        @app.route("/count")
        async def count():
            return str(await app.db.fetch_val("SELECT COUNT(*) FROM tag"))

        async with TestClient(app) as client:
            assert (await client.get("/count")).text == "0"

    async def test_asgi_lifespan(self, tmp_path) -> None:
        app = _app(tmp_path)
        incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict] = []

        async def receive():
            return incoming.pop(0)

        async def send(message):
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    async def test_asgi_lifespan_startup_failure(self, tmp_path) -> None:
        app = _app(tmp_path, migrations_dir=tmp_path / "missing")
        sent: list[dict] = []

        async def receive():
            return {"type": "lifespan.startup"}

        async def send(message):
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert sent[0]["type"] == "lifespan.startup.failed"
        assert "does not exist" in sent[0]["message"]
