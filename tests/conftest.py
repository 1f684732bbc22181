import json

import pytest
from sqlalchemy import create_engine, text

from dataflow.models import DestinationConfig, PipelineConfiguration


ORDERS_DDL = "CREATE TABLE orders (id INTEGER NOT NULL, name VARCHAR(50), amount NUMERIC(10,2))"


def create_orders(engine, row_count, ddl=ORDERS_DDL):
    """Create an ``orders`` table holding ``row_count`` rows."""
    with engine.begin() as conn:
        conn.exec_driver_sql(ddl)
        if row_count:
            conn.execute(
                text("INSERT INTO orders VALUES (:id, :name, :amount)"),
                [
                    {"id": i, "name": f"order {i}", "amount": i * 1.5}
                    for i in range(1, row_count + 1)
                ]
            )


def count_rows(engine, table="orders"):
    with engine.connect() as conn:
        return conn.exec_driver_sql(f"SELECT COUNT(*) FROM {table}").scalar()


@pytest.fixture
def source_url(tmp_path):
    return f"sqlite:///{tmp_path / 'source.db'}"


@pytest.fixture
def dest_url(tmp_path):
    return f"sqlite:///{tmp_path / 'dest.db'}"


@pytest.fixture
def source_engine(source_url):
    engine = create_engine(source_url)
    yield engine
    engine.dispose()


@pytest.fixture
def dest_engine(dest_url):
    engine = create_engine(dest_url)
    yield engine
    engine.dispose()


@pytest.fixture
def pipeline_config(dest_url):
    """A configuration writing into the ``dest_url`` database."""
    return PipelineConfiguration(export=DestinationConfig(url_protocol=dest_url))


@pytest.fixture
def write_config(tmp_path):
    """Write a job description to a file and return its path."""
    def _write(data, name="pipeline-config.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def make_orders():
    return create_orders


@pytest.fixture
def rows_in():
    return count_rows
