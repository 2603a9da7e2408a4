"""Unit tests for the 'connect' and 'disconnect' commands."""

import asyncio

from paramgraph.cli.main import main
from paramgraph.core.types import DependencyEdge
from paramgraph.storage.sqlite import SQLiteRecordStore


def stored_edges(db_path):
    return asyncio.run(SQLiteRecordStore(db_path).fetch_dependency_edges())


class TestConnectCommand:
    def test_connect_by_name(self, runner, db_path):
        result = runner.invoke(main, ["connect", "tipo_tarea", "Pisos", "tipo_ladrillo", "--db", str(db_path)])

        assert result.exit_code == 0, result.output
        assert "Dependency created" in result.output
        assert DependencyEdge(
            parent_parameter_id="A", parent_option_id="a2", child_parameter_id="C"
        ) in stored_edges(db_path)

    def test_cycle_rejected(self, runner, db_path):
        result = runner.invoke(main, ["connect", "tipo_ladrillo", "King Kong", "tipo_tarea", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "cycle" in result.output
        assert len(stored_edges(db_path)) == 2

    def test_duplicate_rejected(self, runner, db_path):
        result = runner.invoke(main, ["connect", "A", "a1", "B", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "already exists" in result.output


class TestDisconnectCommand:
    def test_disconnect(self, runner, db_path):
        result = runner.invoke(main, ["disconnect", "tipo_tarea", "Muros", "tipo_de_muro", "--db", str(db_path)])

        assert result.exit_code == 0, result.output
        assert len(stored_edges(db_path)) == 1

    def test_disconnect_missing(self, runner, db_path):
        result = runner.invoke(main, ["disconnect", "tipo_tarea", "Pisos", "tipo_de_muro", "--db", str(db_path)])

        assert result.exit_code == 1
        assert "does not exist" in result.output
