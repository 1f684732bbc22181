"""
Tests for the streaming copy engine.
"""
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, OperationalError

from dataflow.core import copy
from dataflow.core.schema import ensure_table
from dataflow.core.types import ColumnInfo, GenericType
from dataflow.models import (
    DestinationConfig, ImportJob, PipelineConfiguration, SourceDatabaseEntry
)


def capture_batches(engine):
    """Record the size of every executemany INSERT sent to ``engine``."""
    batches = []

    @event.listens_for(engine, "after_cursor_execute")
    def capture(conn, cursor, statement, parameters, context, executemany):
        if executemany and statement.startswith("INSERT"):
            batches.append(len(parameters))

    return batches


class TestInsertStatement:
    """Test the parameterized insert."""

    def test_one_placeholder_per_column(self):
        columns = [
            ColumnInfo("id", GenericType.INTEGER),
            ColumnInfo("name", GenericType.VARCHAR),
            ColumnInfo("amount", GenericType.NUMERIC),
        ]

        statement = copy.insert_statement("orders", columns)

        assert statement.text == "INSERT INTO orders VALUES (:c0, :c1, :c2)"
        assert set(statement.compile().params) == {"c0", "c1", "c2"}


class TestImportTable:
    """Test copying a single table."""

    def test_trailing_partial_batch_is_flushed(self, source_engine, dest_engine, make_orders, rows_in):
        make_orders(source_engine, 25)
        batches = capture_batches(dest_engine)

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("orders", src, dst)
            result = copy.import_table(ImportJob("orders"), src, dst, fetch_size=7, batch_size=10)

        assert result.rows == 25
        assert result.commits == 3
        assert batches == [10, 10, 5]
        assert rows_in(dest_engine) == 25

        with dest_engine.connect() as conn:
            ids = [row[0] for row in conn.exec_driver_sql("SELECT id FROM orders ORDER BY id")]
        assert ids == list(range(1, 26))

    def test_exact_multiple_of_batch_size(self, source_engine, dest_engine, make_orders, rows_in):
        make_orders(source_engine, 20)
        batches = capture_batches(dest_engine)

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("orders", src, dst)
            result = copy.import_table(ImportJob("orders"), src, dst, batch_size=10)

        assert result.commits == 2
        assert batches == [10, 10]
        assert rows_in(dest_engine) == 20

    def test_empty_table(self, source_engine, dest_engine, make_orders, rows_in, capsys):
        make_orders(source_engine, 0)

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("orders", src, dst)
            result = copy.import_table(ImportJob("orders"), src, dst)

        assert result.rows == 0
        assert result.commits == 0
        assert rows_in(dest_engine) == 0
        assert "Processed 0 record(s) from orders" in capsys.readouterr().out

    def test_values_are_copied(self, source_engine, dest_engine, make_orders):
        make_orders(source_engine, 2)

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("orders", src, dst)
            copy.import_table(ImportJob("orders"), src, dst)

        with dest_engine.connect() as conn:
            rows = conn.exec_driver_sql("SELECT id, name, amount FROM orders ORDER BY id").fetchall()

        assert [tuple(row[:2]) for row in rows] == [(1, "order 1"), (2, "order 2")]
        assert [Decimal(str(row[2])) for row in rows] == [Decimal("1.5"), Decimal("3")]

    def test_custom_query(self, source_engine, dest_engine, make_orders, rows_in):
        make_orders(source_engine, 10)
        job = ImportJob("orders", query="SELECT * FROM orders WHERE id > 6")

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("orders", src, dst)
            result = copy.import_table(job, src, dst)

        assert result.rows == 4
        assert rows_in(dest_engine) == 4

    def test_mixed_column_types(self, source_engine, dest_engine):
        with source_engine.begin() as conn:
            conn.exec_driver_sql(
                "CREATE TABLE events (id BIGINT, happened TIMESTAMP, day DATE, "
                "flag BOOLEAN, payload BLOB, note TEXT)"
            )
            conn.exec_driver_sql(
                "INSERT INTO events VALUES "
                "(1, '2024-01-02 10:30:00', '2024-01-02', 1, x'0102', 'first'), "
                "(2, NULL, NULL, 0, NULL, NULL)"
            )

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("events", src, dst)
            result = copy.import_table(ImportJob("events"), src, dst)

        assert result.rows == 2

        with dest_engine.connect() as conn:
            rows = conn.exec_driver_sql("SELECT * FROM events ORDER BY id").fetchall()

        first, second = rows
        assert first[0] == 1
        assert first[1].startswith("2024-01-02 10:30:00")
        assert first[2] == "2024-01-02"
        assert first[3] == 1
        assert bytes(first[4]) == b"\x01\x02"
        assert first[5] == "first"
        assert tuple(second) == (2, None, None, 0, None, None)

    def test_untyped_column_keeps_values(self, source_engine, dest_engine):
        with source_engine.begin() as conn:
            conn.exec_driver_sql("CREATE TABLE misc (id INTEGER, v)")
            conn.exec_driver_sql("INSERT INTO misc VALUES (1, 3), (2, 'abc'), (3, 2.5), (4, NULL)")

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("misc", src, dst)
            copy.import_table(ImportJob("misc"), src, dst)

        with dest_engine.connect() as conn:
            rows = conn.exec_driver_sql("SELECT id, v FROM misc ORDER BY id").fetchall()

        assert [(row[0], None if row[1] is None else bytes(row[1])) for row in rows] == [
            (1, b"3"), (2, b"abc"), (3, b"2.5"), (4, None)
        ]

    def test_quoted_table_name(self, source_engine, dest_engine):
        with source_engine.begin() as conn:
            conn.exec_driver_sql('CREATE TABLE "Order Lines" (id INTEGER NOT NULL, qty INTEGER)')
            conn.exec_driver_sql('INSERT INTO "Order Lines" VALUES (1, 7)')

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table('"Order Lines"', src, dst)
            result = copy.import_table(ImportJob('"Order Lines"'), src, dst)

        assert result.rows == 1
        with dest_engine.connect() as conn:
            rows = conn.exec_driver_sql('SELECT id, qty FROM "Order Lines"').fetchall()
        assert [tuple(row) for row in rows] == [(1, 7)]

    def test_progress_output(self, source_engine, dest_engine, make_orders, capsys):
        make_orders(source_engine, 25)

        with source_engine.connect() as src, dest_engine.connect() as dst:
            ensure_table("orders", src, dst)
            copy.import_table(ImportJob("orders"), src, dst, batch_size=10)

        out = capsys.readouterr().out
        assert "\rExported 10 records so far..." in out
        assert "\rExported 20 records so far..." in out
        assert out.endswith("Processed 25 record(s) from orders\n")

    def test_failure_keeps_committed_batches(self, source_engine, dest_engine, rows_in):
        with source_engine.begin() as conn:
            conn.exec_driver_sql("CREATE TABLE items (id INTEGER NOT NULL)")
            conn.exec_driver_sql(
                "INSERT INTO items VALUES " + ", ".join(f"({i})" for i in [1, 2, 3, 4, 5, 6, 6, 8])
            )
        with dest_engine.begin() as conn:
            conn.exec_driver_sql("CREATE TABLE items (id INTEGER PRIMARY KEY)")

        with source_engine.connect() as src, dest_engine.connect() as dst:
            with pytest.raises(IntegrityError):
                copy.import_table(ImportJob("items"), src, dst, batch_size=3)

        # First two batches committed; the failing one is not
        assert rows_in(dest_engine, "items") == 6


class TestRunImports:
    """Test running every import of a source database."""

    def make_database(self, *imports, fetch_size=None):
        return SourceDatabaseEntry(
            name="Sales", url="sqlite://", fetch_size=fetch_size, imports=list(imports)
        )

    def test_end_to_end_orders(self, source_engine, dest_engine, dest_url, make_orders, rows_in, capsys):
        make_orders(source_engine, 25000)
        batches = capture_batches(dest_engine)
        config = PipelineConfiguration(export=DestinationConfig(url_protocol=dest_url, export_batch_size=10000))
        database = self.make_database(ImportJob("orders"))

        with source_engine.connect() as src, dest_engine.connect() as dst:
            results = copy.run_imports(src, dst, database, config)

        assert [(r.table, r.rows, r.commits) for r in results] == [("orders", 25000, 3)]
        assert batches == [10000, 10000, 5000]
        assert rows_in(dest_engine) == 25000

        out = capsys.readouterr().out
        assert "Database product: sqlite" in out
        assert "Database version: " in out
        assert "Importing orders..." in out
        assert "Processed 25,000 record(s) from orders" in out

    def test_imports_run_in_order(self, source_engine, dest_engine, pipeline_config, capsys):
        with source_engine.begin() as conn:
            conn.exec_driver_sql("CREATE TABLE b (id INTEGER)")
            conn.exec_driver_sql("CREATE TABLE a (id INTEGER)")
            conn.exec_driver_sql("INSERT INTO a VALUES (1)")
        database = self.make_database(ImportJob("b"), ImportJob("a"))

        with source_engine.connect() as src, dest_engine.connect() as dst:
            results = copy.run_imports(src, dst, database, pipeline_config)

        assert [r.table for r in results] == ["b", "a"]
        out = capsys.readouterr().out
        assert out.index("Importing b...") < out.index("Importing a...")

    def test_job_batch_size_overrides_export(self, source_engine, dest_engine, dest_url, make_orders):
        make_orders(source_engine, 12)
        batches = capture_batches(dest_engine)
        config = PipelineConfiguration(export=DestinationConfig(url_protocol=dest_url, export_batch_size=100))
        database = self.make_database(ImportJob("orders", batch_size=5))

        with source_engine.connect() as src, dest_engine.connect() as dst:
            copy.run_imports(src, dst, database, config)

        assert batches == [5, 5, 2]

    def test_failure_stops_remaining_imports(self, source_engine, dest_engine, pipeline_config, make_orders, caplog):
        make_orders(source_engine, 3)
        database = self.make_database(ImportJob("missing"), ImportJob("orders"))

        with source_engine.connect() as src, dest_engine.connect() as dst:
            with pytest.raises(OperationalError):
                copy.run_imports(src, dst, database, pipeline_config)

        with dest_engine.connect() as conn:
            tables = conn.exec_driver_sql("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        assert tables == []
        assert "Import of missing from Sales failed" in caplog.text
