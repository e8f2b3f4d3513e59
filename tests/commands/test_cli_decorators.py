"""Tests for command_wrapper."""

import typer
from typer.testing import CliRunner

from famtrack.commands.decorators import AppError, command_wrapper
from famtrack.models.exceptions import PermissionDeniedError

runner = CliRunner()


def _app(func) -> typer.Typer:
    app = typer.Typer()
    app.command()(command_wrapper(func))
    return app


def test_async_command_runs():
    calls = []

    async def greet(name: str = typer.Argument(...)):
        calls.append(name)

    result = runner.invoke(_app(greet), ["ada"])

    assert result.exit_code == 0
    assert calls == ["ada"]


def test_app_error_uses_its_exit_code():
    def fail():
        raise AppError("bad input", exit_code=2)

    result = runner.invoke(_app(fail), [])

    assert result.exit_code == 2
    assert "bad input" in result.stdout


def test_domain_errors_exit_one():
    async def deny():
        raise PermissionDeniedError("not your child")

    result = runner.invoke(_app(deny), [])

    assert result.exit_code == 1
    assert "not your child" in result.stdout


def test_unexpected_errors_are_reported(tmp_path):
    def boom():
        raise RuntimeError("kaboom")

    result = runner.invoke(_app(boom), [])

    assert result.exit_code == 1
    assert "unexpected error" in result.stdout
    assert "Traceback" in (tmp_path / "logs" / "famtrack.log").read_text()


def test_exit_passes_through():
    def stop():
        raise typer.Exit(3)

    assert runner.invoke(_app(stop), []).exit_code == 3
