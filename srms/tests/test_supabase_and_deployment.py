from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from srms.core.errors import ConfigurationError
from srms.scripts import check_deployment as deployment_script
from srms.scripts import check_supabase_client as supabase_script
from srms.services import supabase_client as supabase_module
from srms.services.deployment_check import check_deployment_environment
from srms.services.supabase_client import SupabaseSettings, create_supabase_client


class _FakeQuery:
    def __init__(self, rows: list[dict]) -> None:
        self._rows = rows
        self.calls: list[tuple[str, object]] = []

    def select(self, columns: str) -> "_FakeQuery":
        self.calls.append(("select", columns))
        return self

    def limit(self, count: int) -> "_FakeQuery":
        self.calls.append(("limit", count))
        return self

    def execute(self) -> SimpleNamespace:
        return SimpleNamespace(data=self._rows)


class _FakeClient:
    def __init__(self, rows: list[dict]) -> None:
        self.query = _FakeQuery(rows)
        self.tables: list[str] = []

    def table(self, name: str) -> _FakeQuery:
        self.tables.append(name)
        return self.query


def test_settings_require_url_and_key() -> None:
    with pytest.raises(ConfigurationError, match="SUPABASE_URL"):
        SupabaseSettings.from_env({"SUPABASE_KEY": "anon"})
    with pytest.raises(ConfigurationError, match="SUPABASE_KEY"):
        SupabaseSettings.from_env({"SUPABASE_URL": "https://demo.supabase.co"})


def test_settings_accept_public_aliases() -> None:
    settings = SupabaseSettings.from_env(
        {
            "NEXT_PUBLIC_SUPABASE_URL": "https://demo.supabase.co",
            "NEXT_PUBLIC_SUPABASE_PUBLISHABLE_DEFAULT_KEY": "anon-key",
        }
    )

    assert settings.url == "https://demo.supabase.co"
    assert "anon-key" not in repr(settings)


def test_create_client_uses_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, str]] = []
    monkeypatch.setattr(
        supabase_module,
        "create_client",
        lambda url, key: calls.append((url, key)) or _FakeClient([]),
    )

    create_supabase_client(SupabaseSettings("https://demo.supabase.co", "anon-key"))

    assert calls == [("https://demo.supabase.co", "anon-key")]


def test_create_client_wraps_invalid_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    def _reject(url: str, key: str):
        raise ValueError("Invalid URL")

    monkeypatch.setattr(supabase_module, "create_client", _reject)

    with pytest.raises(ConfigurationError, match="Invalid URL"):
        create_supabase_client(SupabaseSettings("not a url", "anon-key"))


def test_supabase_script_reads_one_school(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    client = _FakeClient([{"id": 1}])
    monkeypatch.setattr(supabase_script, "load_env_profile", lambda: None)
    monkeypatch.setattr(supabase_module, "create_client", lambda url, key: client)
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")

    assert supabase_script.run() == 0
    assert client.tables == ["schools"]
    assert ("limit", 1) in client.query.calls
    assert '"rows": 1' in capsys.readouterr().out


def test_supabase_script_fails_without_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(supabase_script, "load_env_profile", lambda: None)
    for name in (
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "NEXT_PUBLIC_SUPABASE_URL",
        "NEXT_PUBLIC_SUPABASE_PUBLISHABLE_DEFAULT_KEY",
    ):
        monkeypatch.delenv(name, raising=False)

    assert supabase_script.run() == 1


def test_deployment_check_reports_missing_variables(tmp_path: Path) -> None:
    report = check_deployment_environment(
        {"SUPABASE_URL": "https://demo.supabase.co", "SUPABASE_KEY": " "},
        dist_dir=tmp_path / "dist",
    )

    assert report["vercel"] is False
    assert report["variables"]["SUPABASE_URL"] is True
    assert "SUPABASE_KEY" in report["missing"]
    assert report["dist_exists"] is False
    assert report["index_html_exists"] is False


def test_deployment_check_detects_vercel_and_build(tmp_path: Path) -> None:
    dist = tmp_path / "dist"
    dist.mkdir()
    (dist / "index.html").write_text("<html></html>", encoding="utf-8")
    environ = {
        "VERCEL": "1",
        "SUPABASE_URL": "u",
        "SUPABASE_KEY": "k",
        "NEXT_PUBLIC_SUPABASE_URL": "u",
        "NEXT_PUBLIC_SUPABASE_PUBLISHABLE_DEFAULT_KEY": "k",
    }

    report = check_deployment_environment(environ, dist_dir=dist)

    assert report["vercel"] is True
    assert report["missing"] == []
    assert report["index_html_exists"] is True


def test_deployment_script_is_informational(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(deployment_script, "load_env_profile", lambda: None)
    monkeypatch.delenv("VERCEL", raising=False)

    report = deployment_script.run()

    assert report["vercel"] is False
    assert "Not running in Vercel environment" in capsys.readouterr().out
