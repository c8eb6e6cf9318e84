"""Tests for the readersync command line, run against the mock transport."""

from __future__ import annotations

import json

import pytest

from readersync import cli
from readersync.config import get_settings
from readersync.transport import clear_transport_cache


@pytest.fixture
def env(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Isolated settings: mock server, state file under tmp_path."""
    monkeypatch.setenv("DEV__TRANSPORT_MOCK", "true")
    monkeypatch.setenv("APP__STATE_FILE", str(tmp_path / "state.json"))
    monkeypatch.setenv("APP__LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("SERVER__USERNAME", raising=False)
    monkeypatch.delenv("SERVER__USERKEY", raising=False)
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    get_settings.cache_clear()
    clear_transport_cache()
    yield tmp_path
    get_settings.cache_clear()
    clear_transport_cache()


@pytest.fixture
def book(env):
    path = env / "book.epub"
    path.write_bytes(b"PK\x03\x04" + b"x" * 5000)
    return path


def _run(*argv: str) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(list(argv))
    return exc_info.value.code


class TestAccountCommands:
    """register / login / logout."""

    def test_register_stores_credentials(self, env, capsys) -> None:
        assert _run("register", "reader", "--password", "secret") == 0

        state = json.loads((env / "state.json").read_text(encoding="utf-8"))
        assert state["credentials"]["username"] == "reader"
        assert "secret" not in json.dumps(state)
        assert "Registered" in capsys.readouterr().out

    def test_register_existing_user(self, env, capsys) -> None:
        _run("register", "reader", "--password", "secret")

        assert _run("register", "reader", "--password", "secret") == 1
        assert "Already exists" in capsys.readouterr().out

    def test_login_wrong_password(self, env, capsys) -> None:
        _run("register", "reader", "--password", "secret")
        _run("logout")

        assert _run("login", "reader", "--password", "nope") == 1
        assert "Unauthorized" in capsys.readouterr().out


class TestDocumentCommands:
    """digest / push / pull / status on a sidecar-backed document."""

    def test_digest(self, book, capsys) -> None:
        from readersync.digest import partial_md5

        assert _run("digest", str(book)) == 0
        assert partial_md5(book) in capsys.readouterr().out

    def test_push_requires_login(self, book, capsys) -> None:
        assert _run("push", str(book)) == 1
        assert "Please login first." in capsys.readouterr().out

    def test_push_then_pull(self, book, env, capsys) -> None:
        _run("register", "reader", "--password", "secret")
        sidecar = env / "book.epub.readersync.json"
        sidecar.write_text(
            json.dumps({"annotations": [{"datetime": "t1", "page": 3, "text": "hi"}]}),
            encoding="utf-8",
        )

        assert _run("push", str(book), "--position", "12", "--percentage", "0.4") == 0
        out = capsys.readouterr().out
        assert "Progress pushed." in out
        assert "Pushed 1 annotations." in out

        data = json.loads(sidecar.read_text(encoding="utf-8"))
        assert data["position"] == "12"

        assert _run("pull", str(book)) == 0
        assert "Already at latest progress." in capsys.readouterr().out

    def test_status(self, book, capsys) -> None:
        assert _run("status", str(book)) == 0

        out = capsys.readouterr().out
        assert "not logged in" in out
        assert "OK" in out

    def test_missing_file(self, env, capsys) -> None:
        assert _run("push", str(env / "missing.epub")) == 1
        assert "no such file" in capsys.readouterr().out

    def test_corrupt_sidecar(self, book, env, capsys) -> None:
        (env / "book.epub.readersync.json").write_text("{oops", encoding="utf-8")

        assert _run("push", str(book)) == 1
        assert "cannot read sidecar" in capsys.readouterr().out


class TestCredentialResolution:
    """Environment login versus the stored one."""

    def test_environment_wins(self, env, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SERVER__USERNAME", "env-reader")
        monkeypatch.setenv("SERVER__USERKEY", "k" * 32)
        state = cli.JsonSettingsStore(env / "state.json")
        state.set_credentials("stored-reader", "s" * 32)

        credentials = cli._resolve_credentials(get_settings(), state)

        assert credentials is not None
        assert credentials.username == "env-reader"

    def test_stored_login_without_environment(self, env) -> None:
        state = cli.JsonSettingsStore(env / "state.json")
        state.set_credentials("stored-reader", "s" * 32)

        credentials = cli._resolve_credentials(get_settings(), state)

        assert credentials is not None
        assert credentials.username == "stored-reader"
