"""
CLI smoke tests with the engine wired to fakes.
"""

from datetime import datetime

import pytest
from rich.console import Console
from typer.testing import CliRunner

from conftest import FakeClient, make_keyword_search, make_opportunity
from leadscope import cli
from leadscope.engine import Engine
from leadscope.memory.store import MemoryStore

runner = CliRunner()


@pytest.fixture
def fake_engine(monkeypatch):
    store = MemoryStore()
    opps = [
        make_opportunity(status="new", total_score=0.9, title="React landing page", created_at=datetime.now()),
        make_opportunity(status="won", total_score=0.5, title="Logo design", created_at=datetime.now()),
    ]
    searches = [make_keyword_search("ks-1", "Web dev")]

    monkeypatch.setattr(cli, "console", Console(width=200))
    monkeypatch.setattr(cli, "Engine", lambda: Engine(client=FakeClient(opps, searches), store=store))
    return store


def test_search(fake_engine):
    result = runner.invoke(cli.app, ["search", "react"])
    assert result.exit_code == 0
    assert "React landing page" in result.output
    assert "Web dev" in result.output


def test_search_no_results(fake_engine):
    result = runner.invoke(cli.app, ["search", "zzzz"])
    assert result.exit_code == 0
    assert "No results" in result.output


def test_filter(fake_engine):
    result = runner.invoke(cli.app, ["filter", "--min-score", "60"])
    assert result.exit_code == 0
    assert "React landing page" in result.output
    assert "Logo design" not in result.output


def test_funnel(fake_engine):
    result = runner.invoke(cli.app, ["funnel"])
    assert result.exit_code == 0
    assert "Conversion Funnel" in result.output
    assert "50.0%" in result.output


def test_snapshot_is_stored(fake_engine):
    result = runner.invoke(cli.app, ["snapshot"])
    assert result.exit_code == 0
    assert any(k.startswith("snapshot_") for k in fake_engine.keys())


def test_unknown_trend_metric(fake_engine):
    result = runner.invoke(cli.app, ["trend", "--metric", "bogus"])
    assert result.exit_code == 2
