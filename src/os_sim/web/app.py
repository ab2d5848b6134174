"""Flask application factory for the simulator's JSON API.

Queries (``GET``) return snapshots; commands (``POST``/``DELETE``)
call the matching kernel command and return its outcome.  The "current
selection" of a file tree view belongs to the front end: every file
system command takes its path(s) in the request body.

- ``GET  /api/state`` — everything at once.
- ``GET  /api/processes|memory|filesystem|devices|log`` — one part.
- ``POST /api/processes`` — create a process (optional ``priority``).
- ``DELETE /api/processes/<pid>`` — terminate a process.
- ``POST /api/fs/folder|file|rename|delete|move`` — file system commands.
- ``POST /api/devices/<name>/request|release`` — device commands.
- ``POST /api/tick`` — run one scheduling step by hand.
"""

from __future__ import annotations

from typing import Any

from flask import Flask, Response, jsonify, request

from os_sim.filesystem import DEFAULT_FILE_NAME, DEFAULT_FOLDER_NAME
from os_sim.kernel import Kernel, KernelState

_HTTP_CREATED = 201
_HTTP_BAD_REQUEST = 400
_HTTP_UNAVAILABLE = 503


class _BadRequestError(Exception):
    """Raise when a request body is missing a field or has the wrong shape."""


# Expected JSON type of every body field any route reads.
_FIELD_TYPES: dict[str, type] = {
    "pid": int,
    "priority": int,
    "path": str,
    "name": str,
    "new_name": str,
    "source": str,
    "target": str,
}

# Fields for which an explicit ``null`` means "not given".
_NULLABLE_FIELDS = frozenset({"priority"})


def _check_type(name: str, value: Any) -> None:
    """Raise ``_BadRequestError`` unless *value* has the field's JSON type."""
    expected = _FIELD_TYPES.get(name)
    if expected is None or (value is None and name in _NULLABLE_FIELDS):
        return
    # JSON true/false decode to bool, which is an int subclass
    if isinstance(value, bool) or not isinstance(value, expected):
        kind = "an integer" if expected is int else "a string"
        msg = f"Field '{name}' must be {kind}"
        raise _BadRequestError(msg)


def _body(*required: str) -> dict[str, Any]:
    """Return the JSON body, checking required fields and field types."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = "Request body must be a JSON object"
        raise _BadRequestError(msg)
    missing = [name for name in required if name not in data]
    if missing:
        msg = f"Missing '{missing[0]}' field"
        raise _BadRequestError(msg)
    for name, value in data.items():
        _check_type(name, value)
    return data


def create_app(kernel: Kernel | None = None, *, start_clock: bool = True) -> Flask:
    """Create and configure the Flask application.

    Args:
        kernel: A kernel to serve.  A fresh one is created and booted
            if omitted; a kernel that is not running is booted.
        start_clock: Start the periodic scheduler ticks.

    Returns:
        A configured Flask application ready to serve.

    """
    if kernel is None:
        kernel = Kernel()
    if kernel.state is KernelState.SHUTDOWN:
        kernel.boot()
    if start_clock:
        kernel.start_clock()

    app = Flask(__name__)
    app.extensions["os_sim.kernel"] = kernel

    @app.errorhandler(_BadRequestError)
    def bad_request(error: _BadRequestError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Report a malformed request body."""
        return jsonify({"error": str(error)}), _HTTP_BAD_REQUEST

    @app.errorhandler(ValueError)
    def bad_value(error: ValueError) -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Report an out-of-range argument (e.g. priority 12)."""
        return jsonify({"error": str(error)}), _HTTP_BAD_REQUEST

    @app.before_request
    def require_running() -> tuple[Response, int] | None:  # pyright: ignore[reportUnusedFunction]
        """Refuse every call once the kernel has shut down."""
        if kernel.state is not KernelState.RUNNING:
            return jsonify({"error": "System halted."}), _HTTP_UNAVAILABLE
        return None

    # -- Queries ------------------------------------------------------------

    @app.route("/api/state")
    def state() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the full simulator snapshot."""
        return jsonify(kernel.snapshot())

    @app.route("/api/processes")
    def list_processes() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the process list."""
        return jsonify([p.to_dict() for p in kernel.processes()])

    @app.route("/api/memory")
    def memory() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the memory slot array."""
        return jsonify({"slots": list(kernel.memory_slots())})

    @app.route("/api/filesystem")
    def filesystem() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the file system tree."""
        return jsonify(kernel.filesystem_tree().to_dict())

    @app.route("/api/devices")
    def devices() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the device table."""
        return jsonify(kernel.devices())

    @app.route("/api/log")
    def log() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the event log messages."""
        return jsonify({"lines": list(kernel.log_lines())})

    # -- Process commands ---------------------------------------------------

    @app.route("/api/processes", methods=["POST"])
    def create_process() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Create a process.  Body: ``{"priority": 0-9}`` (optional)."""
        data = _body()
        process = kernel.create_process(priority=data.get("priority"))
        return jsonify(process.to_dict()), _HTTP_CREATED

    @app.route("/api/processes/<int:pid>", methods=["DELETE"])
    def terminate_process(pid: int) -> Response:  # pyright: ignore[reportUnusedFunction]
        """Terminate a process (unknown PIDs are accepted and ignored)."""
        kernel.terminate_process(pid)
        return jsonify({"ok": True})

    @app.route("/api/tick", methods=["POST"])
    def tick() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Run one scheduling step."""
        result = kernel.tick()
        return jsonify({"tick": result.tick, "demoted": result.demoted, "dispatched": result.dispatched})

    # -- File system commands -----------------------------------------------

    @app.route("/api/fs/folder", methods=["POST"])
    def add_folder() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Add a folder.  Body: ``{"path": ..., "name": ...}``."""
        data = _body("path")
        changed = kernel.add_folder(data["path"], data.get("name", DEFAULT_FOLDER_NAME))
        return jsonify({"changed": changed})

    @app.route("/api/fs/file", methods=["POST"])
    def add_file() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Add a file.  Body: ``{"path": ..., "name": ...}``."""
        data = _body("path")
        changed = kernel.add_file(data["path"], data.get("name", DEFAULT_FILE_NAME))
        return jsonify({"changed": changed})

    @app.route("/api/fs/rename", methods=["POST"])
    def rename() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Rename a node.  Body: ``{"path": ..., "new_name": ...}``."""
        data = _body("path", "new_name")
        return jsonify({"changed": kernel.rename(data["path"], data["new_name"])})

    @app.route("/api/fs/delete", methods=["POST"])
    def delete() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Delete a node.  Body: ``{"path": ...}``."""
        data = _body("path")
        return jsonify({"changed": kernel.delete(data["path"])})

    @app.route("/api/fs/move", methods=["POST"])
    def move() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Move a node.  Body: ``{"source": ..., "target": ...}``."""
        data = _body("source", "target")
        return jsonify({"changed": kernel.move(data["source"], data["target"])})

    # -- Device commands ----------------------------------------------------

    @app.route("/api/devices/<name>/request", methods=["POST"])
    def request_device(name: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        """Request a device.  Body: ``{"pid": ...}``."""
        data = _body("pid")
        return jsonify({"granted": kernel.request_device(data["pid"], name)})

    @app.route("/api/devices/<name>/release", methods=["POST"])
    def release_device(name: str) -> Response:  # pyright: ignore[reportUnusedFunction]
        """Release a device unconditionally."""
        kernel.release_device(name)
        return jsonify({"ok": True})

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``os-sim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080, use_reloader=False)
