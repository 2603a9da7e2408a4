"""Fixtures for command tests: a seed document and a seeded database."""

from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from paramgraph.cli.main import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch):
    """Run every command from an empty directory with logging left alone."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PARAMGRAPH_DB_PATH", raising=False)
    monkeypatch.delenv("PARAMGRAPH_LOG_LEVEL", raising=False)
    with patch("paramgraph.cli.main.configure_logging"):
        yield tmp_path


@pytest.fixture
def seed_file(tmp_path, parameters, options, edges):
    document = {
        "parameters": [p.model_dump(mode="json") for p in parameters],
        "options": [o.model_dump(mode="json") for o in options],
        "dependencies": [
            {**e.model_dump(mode="json"), "child_option_ids": ["c1", "c2"] if e.child_parameter_id == "C" else []}
            for e in edges
        ],
    }
    path = tmp_path / "parameters.yaml"
    path.write_text(yaml.dump(document))
    return path


@pytest.fixture
def db_path(runner, seed_file, tmp_path):
    path = tmp_path / "graph.db"
    result = runner.invoke(main, ["seed", str(seed_file), "--db", str(path)])
    assert result.exit_code == 0, result.output
    return path
