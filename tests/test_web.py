"""Tests for the JSON web API.

The API exposes the kernel's commands and snapshots over HTTP.  Tests
use ``pytest.importorskip`` so they are skipped gracefully when Flask
is not installed, and never start the background clock.
"""

from __future__ import annotations

from typing import Any

import pytest

flask = pytest.importorskip("flask")

from os_sim.config import SimulatorConfig  # noqa: E402
from os_sim.kernel import Kernel, KernelState  # noqa: E402
from os_sim.web.app import create_app  # noqa: E402

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_UNAVAILABLE = 503
SLOTS = 4


def _create_client(kernel: Kernel | None = None) -> Any:
    """Create a test client around a fresh kernel with the clock stopped."""
    if kernel is None:
        kernel = Kernel(SimulatorConfig(memory_slots=SLOTS))
    app = create_app(kernel, start_clock=False)
    app.config["TESTING"] = True
    return app.test_client()


class TestAppCreation:
    """Verify the app factory."""

    def test_create_app_returns_flask(self) -> None:
        """create_app should return a Flask application."""
        app = create_app(Kernel(), start_clock=False)
        assert isinstance(app, flask.Flask)

    def test_factory_boots_kernel(self) -> None:
        """An unbooted kernel is booted by the factory."""
        kernel = Kernel()
        create_app(kernel, start_clock=False)
        assert kernel.state is KernelState.RUNNING

    def test_factory_starts_clock(self) -> None:
        """By default the scheduling clock is running."""
        kernel = Kernel()
        create_app(kernel)
        try:
            assert kernel.clock_running
        finally:
            kernel.shutdown()


class TestQueries:
    """Verify the snapshot endpoints."""

    def test_state(self) -> None:
        """GET /api/state returns every section."""
        response = _create_client().get("/api/state")
        assert response.status_code == HTTP_OK
        data = response.get_json()
        assert set(data) >= {"processes", "memory", "filesystem", "devices", "log"}

    def test_memory_starts_empty(self) -> None:
        """All slots are empty after boot."""
        data = _create_client().get("/api/memory").get_json()
        assert data["slots"] == [None] * SLOTS

    def test_filesystem_root(self) -> None:
        """The tree starts as an empty root folder."""
        data = _create_client().get("/api/filesystem").get_json()
        assert data == {"name": "/", "type": "folder", "children": []}

    def test_devices(self) -> None:
        """Both default devices are listed as free."""
        data = _create_client().get("/api/devices").get_json()
        assert data == {"keyboard": None, "printer": None}


class TestProcessEndpoints:
    """Verify process commands."""

    def test_create_process(self) -> None:
        """POST /api/processes creates a READY process."""
        client = _create_client()
        response = client.post("/api/processes", json={"priority": 4})
        assert response.status_code == HTTP_CREATED
        data = response.get_json()
        assert data["state"] == "ready"
        assert data["priority"] == 4  # noqa: PLR2004
        assert client.get("/api/memory").get_json()["slots"][0] == data["pid"]

    def test_create_without_body(self) -> None:
        """The body is optional."""
        response = _create_client().post("/api/processes")
        assert response.status_code == HTTP_CREATED

    def test_bad_priority(self) -> None:
        """Out-of-range priorities are rejected with 400."""
        response = _create_client().post("/api/processes", json={"priority": 12})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "Priority" in response.get_json()["error"]

    def test_non_integer_priority(self) -> None:
        """A priority sent as a string is a bad request, not a crash."""
        client = _create_client()
        response = client.post("/api/processes", json={"priority": "5"})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "priority" in response.get_json()["error"]
        assert client.get("/api/processes").get_json() == []

    def test_null_priority_is_random(self) -> None:
        """An explicit null priority is treated as omitted."""
        response = _create_client().post("/api/processes", json={"priority": None})
        assert response.status_code == HTTP_CREATED

    def test_array_body(self) -> None:
        """A body that is not a JSON object is rejected."""
        response = _create_client().post("/api/processes", json=[4])
        assert response.status_code == HTTP_BAD_REQUEST
        assert "object" in response.get_json()["error"]

    def test_terminate_and_tick(self) -> None:
        """Ticks dispatch; DELETE removes the process."""
        client = _create_client()
        pid = client.post("/api/processes").get_json()["pid"]
        tick = client.post("/api/tick").get_json()
        assert tick["dispatched"] == pid
        response = client.delete(f"/api/processes/{pid}")
        assert response.status_code == HTTP_OK
        assert client.get("/api/processes").get_json() == []
        assert f"Terminating process {pid}" in client.get("/api/log").get_json()["lines"]


class TestFileSystemEndpoints:
    """Verify file system commands."""

    def test_scenario(self) -> None:
        """Folder, file, move, delete — through HTTP."""
        client = _create_client()
        client.post("/api/fs/folder", json={"path": "/", "name": "docs"})
        client.post("/api/fs/file", json={"path": "/docs", "name": "a.txt"})
        moved = client.post("/api/fs/move", json={"source": "/docs/a.txt", "target": "/"})
        assert moved.get_json() == {"changed": True}
        client.post("/api/fs/delete", json={"path": "/docs"})
        tree = client.get("/api/filesystem").get_json()
        assert tree["children"] == [{"name": "a.txt", "type": "file"}]

    def test_rename_missing_path(self) -> None:
        """A rename that finds nothing reports no change."""
        response = _create_client().post("/api/fs/rename", json={"path": "/nope", "new_name": "x"})
        assert response.status_code == HTTP_OK
        assert response.get_json() == {"changed": False}

    def test_missing_field(self) -> None:
        """Required fields are enforced."""
        response = _create_client().post("/api/fs/move", json={"source": "/a"})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "target" in response.get_json()["error"]

    @pytest.mark.parametrize(
        ("route", "body"),
        [
            ("/api/fs/folder", {"path": 5}),
            ("/api/fs/file", {"path": "/", "name": ["a"]}),
            ("/api/fs/rename", {"path": "/", "new_name": None}),
            ("/api/fs/delete", {"path": {"x": 1}}),
            ("/api/fs/move", {"source": "/a", "target": 0}),
        ],
    )
    def test_non_string_path_fields(self, route: str, body: dict[str, object]) -> None:
        """Paths and names must be strings; the tree is left alone."""
        client = _create_client()
        response = client.post(route, json=body)
        assert response.status_code == HTTP_BAD_REQUEST
        assert "must be a string" in response.get_json()["error"]
        assert client.get("/api/filesystem").get_json()["children"] == []


class TestDeviceEndpoints:
    """Verify device commands."""

    def test_request_and_release(self) -> None:
        """Second request denied; release lets it through."""
        client = _create_client()
        first = client.post("/api/devices/keyboard/request", json={"pid": 1})
        second = client.post("/api/devices/keyboard/request", json={"pid": 2})
        assert first.get_json() == {"granted": True}
        assert second.get_json() == {"granted": False}
        client.post("/api/devices/keyboard/release")
        third = client.post("/api/devices/keyboard/request", json={"pid": 2})
        assert third.get_json() == {"granted": True}
        assert client.get("/api/devices").get_json()["keyboard"] == 2  # noqa: PLR2004

    def test_request_needs_pid(self) -> None:
        """A request without a PID is a bad request."""
        response = _create_client().post("/api/devices/keyboard/request", json={})
        assert response.status_code == HTTP_BAD_REQUEST

    @pytest.mark.parametrize("pid", ["1", True, 1.0, None])
    def test_request_rejects_non_integer_pid(self, pid: object) -> None:
        """Only a JSON integer is accepted as a PID; the device stays free."""
        client = _create_client()
        response = client.post("/api/devices/keyboard/request", json={"pid": pid})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "pid" in response.get_json()["error"]
        assert client.get("/api/devices").get_json()["keyboard"] is None

    def test_terminate_releases_requested_device(self) -> None:
        """A device requested over HTTP is freed when its holder terminates."""
        client = _create_client()
        pid = client.post("/api/processes").get_json()["pid"]
        client.post("/api/devices/printer/request", json={"pid": pid})
        assert client.get("/api/devices").get_json()["printer"] == pid
        client.delete(f"/api/processes/{pid}")
        assert client.get("/api/devices").get_json() == {"keyboard": None, "printer": None}


class TestHalted:
    """Verify behaviour after shutdown."""

    def test_halted_kernel_returns_503(self) -> None:
        """Every endpoint refuses service once the kernel stops."""
        kernel = Kernel()
        client = _create_client(kernel)
        kernel.shutdown()
        response = client.get("/api/state")
        assert response.status_code == HTTP_UNAVAILABLE
