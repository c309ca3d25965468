"""A JSON request server that runs SQL against an engine over TCP."""

from __future__ import annotations

import asyncio
import contextlib
import json
import sys
from typing import Any, Optional, Protocol

from rdbms.printer import Message, ReplOutput, Rows, to_serializable

SERVER_VERSION = "0.4.0"
_READ_SIZE = 4096


class _Engine(Protocol):
    def execute_sql(self, sql: str) -> ReplOutput: ...


def output_to_result(output: ReplOutput) -> dict[str, Any]:
    """Turn a statement result into the JSON ``result`` object."""
    if isinstance(output, Rows):
        return {
            "columns": [f.name for f in output.schema.fields],
            "rows": [[to_serializable(value) for value in row] for row in output.rows],
        }
    if isinstance(output, Message):
        return {"message": output.text}
    raise TypeError(f"unsupported output {output!r}")


def _response(status: str, result: Any = None, error: Optional[str] = None) -> dict[str, Any]:
    return {"status": status, "result": result, "error": error}


def _sql_from_params(params: Any) -> str:
    if isinstance(params, list):
        first = params[0] if params else None
        return first if isinstance(first, str) else ""
    if isinstance(params, str):
        return params
    return ""


def handle_request(engine: _Engine, request: Any) -> dict[str, Any]:
    """Answer one decoded request with a response object."""
    if not isinstance(request, dict) or not isinstance(request.get("method"), str):
        raise ValueError("parse request: expected an object with a string 'method'")
    method = request["method"]
    if method == "execute":
        sql = _sql_from_params(request.get("params"))
        try:
            output = engine.execute_sql(sql)
        except Exception as err:  # every engine failure becomes an error response
            return _response("error", error=str(err))
        return _response("ok", result=output_to_result(output))
    if method == "ping":
        return _response("ok", result={"version": SERVER_VERSION})
    return _response("error", error=f"unknown method: {method}")


def _format_addr(peer: Any) -> str:
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer)


async def handle_client(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    engine: _Engine,
    lock: asyncio.Lock,
) -> None:
    """Serve requests from one connection until the peer closes it."""
    addr = _format_addr(writer.get_extra_info("peername"))
    try:
        while True:
            data = await reader.read(_READ_SIZE)
            if not data:
                break
            try:
                request = json.loads(data)
            except ValueError as err:
                raise ValueError(f"parse request: {err}") from err
            async with lock:
                response = handle_request(engine, request)
            writer.write(json.dumps(response, separators=(",", ":")).encode("utf-8"))
            await writer.drain()
    finally:
        writer.close()
        with contextlib.suppress(Exception):
            await writer.wait_closed()
    print(f"Client {addr} disconnected")


async def serve(engine: _Engine, host: str = "0.0.0.0", port: int = 5432) -> None:
    """Accept clients on ``host``:``port`` forever, sharing one engine between them."""
    lock = asyncio.Lock()

    async def on_client(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        addr = _format_addr(writer.get_extra_info("peername"))
        print(f"Client {addr} connected")
        try:
            await handle_client(reader, writer, engine, lock)
        except Exception as err:  # one bad client must not stop the server
            print(f"Error handling client {addr}: {err}", file=sys.stderr)

    server = await asyncio.start_server(on_client, host, port)
    async with server:
        await server.serve_forever()