"""Helpers shared by the command modules."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import typer

from ..config import ShellConfig
from ..connection import Near, connect
from ..utils.format import format_response


def get_config(ctx: typer.Context, **overrides: Any) -> ShellConfig:
    """The root callback's ShellConfig, with per-command overrides applied."""
    config: ShellConfig = ctx.find_root().obj
    return config.with_overrides(**overrides)


def connect_from(ctx: typer.Context, **overrides: Any) -> Near:
    return connect(get_config(ctx, **overrides))


def parse_args(args: Optional[str]) -> Dict[str, Any]:
    """Contract call arguments: a JSON object, `{}` when omitted."""
    if not args:
        return {}
    try:
        value = json.loads(args)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"args must be a JSON object: {e}") from e
    if not isinstance(value, dict):
        raise typer.BadParameter("args must be a JSON object")
    return value


def print_response(obj: Any) -> None:
    typer.echo(format_response(obj))


__all__ = ["get_config", "connect_from", "parse_args", "print_response"]
