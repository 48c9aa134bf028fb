"""Output helpers for ocacli."""

from __future__ import annotations

import datetime as _dt
import json
from typing import Any, Dict, Mapping, Optional

from .context import SessionContext


def _json_dump(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, default=str)


def emit_result(ctx: SessionContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = dict(data)
        else:
            payload["message"] = message
        ctx.print(_json_dump(payload))
    else:
        ctx.print(message)


def emit_error(ctx: SessionContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        ctx.print(_json_dump(payload))
    else:
        ctx.print(f"error: {message}")


def format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def format_timestamp(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return _dt.datetime.fromtimestamp(value).strftime("%Y-%m-%d %H:%M:%S")


def dump_json(payload: Any) -> str:
    return _json_dump(payload)


__all__ = ["emit_result", "emit_error", "format_value", "format_timestamp", "dump_json"]
