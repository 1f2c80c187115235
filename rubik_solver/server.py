"""HTTP API server for the cube solver."""

from __future__ import annotations

import json
import threading
from dataclasses import fields
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from .actions import check_move, parse_move, parse_moves
from .engine import RubikEngine
from .errors import InvalidArgumentError, RubikSolverError, StateValidationError
from .search import SearchOptions
from .solved_check import is_solved
from .state_codec import state_to_json

_OPTION_FIELDS = {f.name for f in fields(SearchOptions)} - {"moves"}


def _coerce_move(value: Any) -> int:
    if isinstance(value, str):
        return parse_move(value)
    return check_move(value)


def _coerce_moves(value: Any) -> list[int]:
    if isinstance(value, str):
        return parse_moves(value)
    if not isinstance(value, list):
        raise InvalidArgumentError("moves must be a list or a move string")
    moves: list[int] = []
    for v in value:
        if isinstance(v, str):
            moves.extend(parse_moves(v))
        else:
            moves.append(check_move(v))
    return moves


def _search_options(body: dict[str, Any]) -> SearchOptions | None:
    overrides = {k: body[k] for k in _OPTION_FIELDS if k in body}
    if "moves" in body:
        overrides["moves"] = tuple(_coerce_moves(body["moves"]))
    if not overrides:
        return None
    return SearchOptions(**overrides)


class RubikHTTPServer:
    def __init__(
        self,
        engine: RubikEngine,
        host: str = "127.0.0.1",
        port: int = 8000,
    ):
        self.engine = engine
        self._lock = threading.RLock()

        handler_cls = self._build_handler()
        self.httpd = ThreadingHTTPServer((host, port), handler_cls)
        self.host, self.port = self.httpd.server_address

    def _build_handler(self):
        parent = self

        class Handler(BaseHTTPRequestHandler):
            server_version = "RubikSolver/1.0"

            def log_message(self, fmt: str, *args):
                return

            def _send_json(self, code: int, payload: dict[str, Any]):
                body = json.dumps(payload).encode("utf-8")
                self.send_response(code)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def _read_json(self) -> dict[str, Any]:
                length = int(self.headers.get("Content-Length", "0"))
                if length == 0:
                    return {}
                data = self.rfile.read(length)
                try:
                    obj = json.loads(data.decode("utf-8"))
                except json.JSONDecodeError as exc:
                    raise StateValidationError(f"Invalid JSON body: {exc}") from exc
                if not isinstance(obj, dict):
                    raise StateValidationError("JSON body must be an object")
                return obj

            def do_GET(self):
                with parent._lock:
                    if self.path == "/health":
                        self._send_json(200, {"cube_size": 3, "ready": True})
                        return

                    if self.path == "/state":
                        self._send_json(200, parent.engine.state_payload())
                        return

                    if self.path == "/solved":
                        self._send_json(200, {"solved": parent.engine.is_solved()})
                        return

                self._send_json(404, {"error": "Not Found"})

            def do_POST(self):
                try:
                    body = self._read_json()
                    with parent._lock:
                        if self.path == "/state":
                            state = body.get("state")
                            if state is None:
                                raise StateValidationError("Missing required field: state")
                            parent.engine.set_state(state)
                            self._send_json(200, parent.engine.state_payload())
                            return

                        if self.path == "/reset":
                            state = body.get("state") if "state" in body else None
                            parent.engine.reset(state=state)
                            self._send_json(200, parent.engine.state_payload())
                            return

                        if self.path == "/scramble":
                            if "steps" not in body:
                                raise InvalidArgumentError("Missing required field: steps")
                            seed = body.get("seed")
                            if seed is not None and not isinstance(seed, int):
                                raise InvalidArgumentError("seed must be an integer or null")
                            state, moves = parent.engine.scramble(
                                steps=body["steps"],
                                seed=seed,
                                avoid_inverse=bool(body.get("avoid_inverse", False)),
                            )
                            self._send_json(
                                200,
                                {
                                    "state": state_to_json(state),
                                    "moves": moves,
                                    "step_count": parent.engine.step_count,
                                    "scrambled": not is_solved(state),
                                },
                            )
                            return

                        if self.path == "/step":
                            if "move" not in body:
                                raise InvalidArgumentError("Missing required field: move")
                            move = _coerce_move(body["move"])
                            state = parent.engine.step(move)
                            self._send_json(
                                200,
                                {
                                    "state": state_to_json(state),
                                    "move": move,
                                    "solved": parent.engine.is_solved(),
                                    "step_count": parent.engine.step_count,
                                },
                            )
                            return

                        if self.path == "/moves":
                            if "moves" not in body:
                                raise InvalidArgumentError("Missing required field: moves")
                            moves = _coerce_moves(body["moves"])
                            state = parent.engine.apply_moves(moves)
                            self._send_json(
                                200,
                                {
                                    "state": state_to_json(state),
                                    "moves": moves,
                                    "solved": parent.engine.is_solved(),
                                    "step_count": parent.engine.step_count,
                                },
                            )
                            return

                        if self.path == "/solve":
                            result = parent.engine.solve(
                                algorithm=body.get("algorithm"),
                                options=_search_options(body),
                                apply=bool(body.get("apply", False)),
                            )
                            payload = result.to_dict()
                            payload["state"] = parent.engine.state_payload()
                            self._send_json(200, payload)
                            return

                except RubikSolverError as exc:
                    self._send_json(400, {"error": str(exc)})
                    return
                except TypeError as exc:
                    self._send_json(400, {"error": f"Invalid request field: {exc}"})
                    return

                self._send_json(404, {"error": "Not Found"})

        return Handler

    def serve_forever(self):
        self.httpd.serve_forever()

    def start_background(self, daemon: bool = True) -> threading.Thread:
        thread = threading.Thread(target=self.serve_forever, daemon=daemon)
        thread.start()
        return thread

    def shutdown(self):
        self.httpd.shutdown()
        self.httpd.server_close()
