import sys
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from app.api import get_snapshot_service
from app.main import create_app
from services.bridge import ExternalSensorBridge, build_default_bridge
from services.catalog import SensorCatalog, build_default_catalog
from services.snapshot import SnapshotService, build_default_snapshot_service
from settings import get_settings
from tests.conftest import w1_content

ClientFactory = Callable[..., TestClient]


@pytest.fixture
def make_client(tmp_path, monkeypatch) -> Iterator[ClientFactory]:
    services: List[SnapshotService] = []
    clients: List[TestClient] = []

    def factory(
        root: Path,
        bridge_command: Optional[Sequence[str]] = None,
        lock_timeout: float = 1.0,
    ) -> TestClient:
        service = SnapshotService(
            catalog=SensorCatalog(root_path=root),
            bridge=ExternalSensorBridge(bridge_command, workdir=tmp_path, timeout=5.0),
            lock_timeout=lock_timeout,
        )
        services.append(service)

        def build_test_service() -> SnapshotService:
            return service

        build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

        monkeypatch.setattr("app.main.build_default_snapshot_service", build_test_service)
        monkeypatch.setattr("app.api.build_default_snapshot_service", build_test_service)

        client = TestClient(create_app())
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_sensors_end_to_end(make_client, w1_tree) -> None:
    root = w1_tree(["21500", "19875"])
    client = make_client(root)

    response = client.get("/sensors")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    order = {
        path.read_text(): str(index)
        for index, path in enumerate(SensorCatalog(root).discover())
    }
    expected = sorted(
        [
            {"id": order[w1_content("21500")], "value": "21.500"},
            {"id": order[w1_content("19875")], "value": "19.875"},
        ],
        key=lambda item: item["id"],
    )
    assert response.json() == {"sensors": expected}
    assert response.text == (
        '{"sensors":['
        + ",".join(f'{{"id":"{item["id"]}","value":"{item["value"]}"}}' for item in expected)
        + "]}"
    )


def test_sensors_include_bridge_readings(make_client, w1_tree) -> None:
    root = w1_tree(["21500", "19875"])
    client = make_client(root, bridge_command=_python("print('22.3 41.0')"))

    payload = client.get("/sensors").json()

    assert [item["id"] for item in payload["sensors"]] == ["0", "1", "100", "101"]
    assert payload["sensors"][2] == {"id": "100", "value": "22.3"}
    assert payload["sensors"][3] == {"id": "101", "value": "41.0"}


def test_failing_bridge_still_serves_catalog(make_client, w1_tree) -> None:
    root = w1_tree(["21500"])
    client = make_client(root, bridge_command=_python("print('1 2'); raise SystemExit(1)"))

    response = client.get("/sensors")

    assert response.status_code == 200
    assert response.json() == {"sensors": [{"id": "0", "value": "21.500"}]}


def test_garbled_bridge_output_is_ignored(make_client, w1_tree) -> None:
    root = w1_tree(["21500"])
    client = make_client(root, bridge_command=_python("print('Failed')"))

    response = client.get("/sensors")

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["sensors"]] == ["0"]


def test_unreadable_sensor_file_returns_server_error(make_client, w1_tree, monkeypatch) -> None:
    root = w1_tree(["21500"])
    client = make_client(root)

    def read_text(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_text", read_text)

    response = client.get("/sensors")

    assert response.status_code == 500
    assert "Unable to read sensor file" in response.json()["detail"]


def test_malformed_sensor_file_returns_server_error(make_client, w1_tree) -> None:
    root = w1_tree(["5"])
    client = make_client(root)

    response = client.get("/sensors")

    assert response.status_code == 500
    assert "Malformed sensor data" in response.json()["detail"]


def test_missing_sensor_root_returns_server_error(make_client, tmp_path) -> None:
    client = make_client(tmp_path / "absent")

    response = client.get("/sensors")

    assert response.status_code == 500
    assert "not a directory" in response.json()["detail"]


def test_busy_lock_returns_service_unavailable(make_client, w1_tree) -> None:
    root = w1_tree(["21500"])
    client = make_client(root, lock_timeout=0.05)
    service = get_snapshot_service()

    assert service._lock.acquire(timeout=1)  # type: ignore[attr-defined]
    try:
        response = client.get("/sensors")
    finally:
        service._lock.release()  # type: ignore[attr-defined]

    assert response.status_code == 503
    assert response.content == b""
    assert client.get("/sensors").status_code == 200


def test_serialization_failure_returns_empty_server_error(make_client, w1_tree, monkeypatch) -> None:
    root = w1_tree(["21500"])
    client = make_client(root)

    def broken(_readings) -> str:
        raise ValueError("cannot encode")

    monkeypatch.setattr("services.snapshot.serialize", broken)

    response = client.get("/sensors")

    assert response.status_code == 500
    assert response.content == b""


def test_health_and_root(make_client, tmp_path) -> None:
    client = make_client(tmp_path)

    assert client.get("/health").json() == {"status": "ok"}
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["status"] == "ok"


def test_lifespan_clears_service_cache(monkeypatch, w1_tree) -> None:
    root = w1_tree(["21500"])
    monkeypatch.setenv("SENSOR_ROOT_PATH", str(root))
    monkeypatch.setenv("SENSOR_BRIDGE_COMMAND", "")
    caches = (get_settings, build_default_catalog, build_default_bridge, build_default_snapshot_service)
    for cache in caches:
        cache.cache_clear()

    try:
        with TestClient(create_app()) as client:
            service_during = build_default_snapshot_service()
            assert client.get("/sensors").json() == {
                "sensors": [{"id": "0", "value": "21.500"}]
            }

        service_after = build_default_snapshot_service()
        assert service_after is not service_during
    finally:
        for cache in caches:
            cache.cache_clear()
