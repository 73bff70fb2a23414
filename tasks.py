"""Invoke tasks for Cellarbook application management."""

import sys

from invoke import task
from invoke.context import Context


@task
def start(ctx: Context, host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Start the Cellarbook FastAPI server.

    Args:
        ctx: Invoke context
        host: Host to bind to (default: 127.0.0.1)
        port: Port to bind to (default: 8000)
        reload: Enable auto-reload for development
    """
    cmd = f"{sys.executable} -m uvicorn cellarbook.main:app --host {host} --port {port}"
    if reload:
        cmd += " --reload"

    try:
        ctx.run(cmd, pty=True)
    except KeyboardInterrupt:
        print("\nServer stopped")
        sys.exit(0)


@task
def test(ctx: Context, verbose: bool = False, coverage: bool = False) -> None:
    """Run the test suite.

    Args:
        ctx: Invoke context
        verbose: Enable verbose output
        coverage: Run with coverage report
    """
    cmd = f"{sys.executable} -m pytest"
    if verbose:
        cmd += " -v"
    if coverage:
        cmd += " --cov=cellarbook --cov-report=term-missing"
    ctx.run(cmd, pty=True)


@task(name="refresh-catalog")
def refresh_catalog(ctx: Context, source: str = "") -> None:
    """Reload the reference catalog.

    Args:
        ctx: Invoke context
        source: CSV file to load (default: configured source_path)
    """
    cmd = "cellarbook-admin catalog refresh"
    if source:
        cmd += f" --source {source}"
    ctx.run(cmd)
