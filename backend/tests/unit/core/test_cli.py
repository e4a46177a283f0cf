"""Unit tests for the command line entry points."""

import io

import pytest

from mssql_exporter import __main__ as cli
from mssql_exporter import main as exporter_main
from mssql_exporter.core.config import get_settings
from mssql_exporter.docs import render_catalog
from mssql_exporter.domains.collection.fakes.catalog import FAKE_CATALOG, SERVER_QUERY


class TestRenderCatalog:
    def test_queries_and_gauge_summary(self):
        text = render_catalog(FAKE_CATALOG)

        assert "-- test_server_metric Server metric" in text
        assert f"{SERVER_QUERY};" in text
        assert "* test_fast_metric{database} Fast metric" in text
        assert text.rstrip().endswith("*/")

    def test_every_query_is_rendered_once(self):
        text = render_catalog(FAKE_CATALOG)

        for descriptor in FAKE_CATALOG.descriptors:
            assert text.count(f"{descriptor.query};") == 1


class TestCommands:
    def test_docs(self, monkeypatch):
        out = io.StringIO()
        monkeypatch.setattr("sys.stdout", out)

        assert cli.run(["docs"]) == 0
        assert "mssql_deadlocks" in out.getvalue()

    def test_serve_is_default(self, monkeypatch):
        calls = []
        monkeypatch.setattr(exporter_main, "main", lambda: calls.append("serve") or 0)

        assert cli.run([]) == 0
        assert calls == ["serve"]

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            cli.run(["scrape"])

    def test_missing_configuration_exits_1(self, monkeypatch, tmp_path):
        for name in ("SERVER", "USERNAME", "PASSWORD"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.chdir(tmp_path)
        get_settings.cache_clear()
        monkeypatch.setattr(exporter_main, "configure_logging", lambda *args, **kwargs: None)

        try:
            assert exporter_main.main() == 1
        finally:
            get_settings.cache_clear()
