import pytest
from click.testing import CliRunner

from jobfinder import cli, jobs, matching


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    monkeypatch.setenv("COLUMNS", "200")


@pytest.fixture
def runner():
    return CliRunner()


def test_search_prints_table(runner, engine, monkeypatch):
    monkeypatch.setattr(matching, "get_search_engine", lambda: engine)
    result = runner.invoke(cli.main, ["search", "Remote SWE"])
    assert result.exit_code == 0
    assert "Remote Software Engineer" in result.output


def test_search_failure_aborts(runner, engine, fake_store, monkeypatch):
    fake_store.fail = True
    monkeypatch.setattr(matching, "get_search_engine", lambda: engine)
    result = runner.invoke(cli.main, ["search", "nurse"])
    assert result.exit_code == 1
    assert "Search failed" in result.output


def test_index_command(runner, engine, fake_store, monkeypatch):
    monkeypatch.setattr(matching, "get_search_engine", lambda: engine)
    result = runner.invoke(cli.main, ["index"])
    assert result.exit_code == 0
    assert fake_store.upsert_calls == 1


def test_jobs_list(runner, corpus, monkeypatch):
    monkeypatch.setattr(jobs, "get_job_corpus", lambda: corpus)
    result = runner.invoke(cli.main, ["jobs", "list"])
    assert result.exit_code == 0
    assert "1_2" in result.output


def test_jobs_list_with_missing_corpus(runner, tmp_path, monkeypatch):
    monkeypatch.setattr(jobs, "get_job_corpus", lambda: jobs.load_corpus(tmp_path / "nope.json"))
    result = runner.invoke(cli.main, ["jobs", "list"])
    assert result.exit_code == 1
    assert "Error loading job corpus" in result.output
