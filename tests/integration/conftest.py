from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from sqlalchemy import delete

from bistro.infrastructure.db import session as db_session
from bistro.infrastructure.db.models import (  # noqa: F401
    catalog,
    inventory,
    ledger,
    order,
    settings,
    table,
)
from bistro.infrastructure.db.models.base import Base

BACKEND_DIR = Path(__file__).resolve().parents[2]


@pytest.fixture(scope="session", autouse=True)
def integration_environment(tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    database_path = tmp_path_factory.mktemp("db") / "bistro.sqlite3"

    os.environ["DATABASE_URL"] = f"sqlite:///{database_path}"
    os.environ.pop("REDIS_URL", None)
    os.environ["RECONCILE_INTERVAL_SECONDS"] = "0"
    os.environ["APP_ENV"] = "test"
    os.environ.setdefault("OTEL_SERVICE_NAME", "bistro-pos-test")
    os.environ.setdefault("OTEL_EXPORTER_OTLP_ENDPOINT", "")

    db_session._build_engine.cache_clear()

    env = os.environ.copy()
    env["PYTHONPATH"] = f"{BACKEND_DIR / 'src'}{os.pathsep}{env.get('PYTHONPATH', '')}".rstrip(
        os.pathsep
    )

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
        cwd=BACKEND_DIR,
        env=env,
        check=True,
    )
    yield
    db_session._build_engine.cache_clear()


@pytest.fixture(autouse=True)
def clean_database() -> Iterator[None]:
    yield
    with db_session.get_engine().begin() as connection:
        for model_table in reversed(Base.metadata.sorted_tables):
            connection.execute(delete(model_table))


@pytest.fixture
def client() -> Iterator[TestClient]:
    from bistro.api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def floor(client: TestClient) -> dict[str, str]:
    """Two tables and a small catalog, created through the API."""
    for table_id in (1, 2):
        response = client.post("/v1/tables", json={"tableId": table_id})
        assert response.status_code == 201

    category = client.post("/v1/categories", json={"name": "Pratos", "icon": "utensils"})
    assert category.status_code == 201
    category_id = category.json()["categoryId"]

    ids = {"category": category_id}
    for key, name, price, stock in (
        ("burger", "Burger", 2500, 10),
        ("soda", "Soda", 600, 5),
    ):
        product = client.post(
            "/v1/products",
            json={
                "name": name,
                "priceCents": price,
                "stockQuantity": stock,
                "categoryId": category_id,
            },
        )
        assert product.status_code == 201
        ids[key] = product.json()["productId"]
    return ids
