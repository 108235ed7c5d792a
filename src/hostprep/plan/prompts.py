# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostprep/plan/prompts.py
from __future__ import annotations

from typing import Optional, Protocol, Sequence

import click
import typer


class Prompter(Protocol):
    """
    The interactive widgets ConfigCollector drives. Implementations block
    until the operator answers.
    """

    def text(self, message: str, default: Optional[str] = None) -> str: ...

    def secret(self, message: str) -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def choice(self, message: str, options: Sequence[str], default: Optional[str] = None) -> str: ...

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class TyperPrompter:
    def text(self, message: str, default: Optional[str] = None) -> str:
        # default="" lets the operator submit an empty answer
        return typer.prompt(
            typer.style(message, fg=typer.colors.MAGENTA, bold=True),
            default=default if default is not None else "",
            show_default=default is not None,
        )

    def secret(self, message: str) -> str:
        return typer.prompt(
            typer.style(message, fg=typer.colors.MAGENTA, bold=True),
            hide_input=True,
            default="",
            show_default=False,
        )

    def confirm(self, message: str, default: bool = False) -> bool:
        return typer.confirm(
            typer.style(message, fg=typer.colors.MAGENTA, bold=True),
            default=default,
        )

    def choice(self, message: str, options: Sequence[str], default: Optional[str] = None) -> str:
        return typer.prompt(
            typer.style(message, fg=typer.colors.MAGENTA, bold=True),
            type=click.Choice(list(options)),
            default=default,
            show_choices=True,
        )

    def info(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.CYAN, bold=True)

    def error(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.RED, bold=True, err=True)
