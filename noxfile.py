"""Nox configuration."""

from __future__ import annotations

from pathlib import Path

import nox

nox.options.sessions = ["tests", "lint"]

package = "singer_protocol"
python_versions = ["3.10", "3.11", "3.12", "3.13"]
locations = package, "tests", "noxfile.py"


@nox.session(python=python_versions, tags=["test"])
def tests(session: nox.Session) -> None:
    """Execute pytest tests and compute coverage."""
    session.install("-e", ".[testing]", "coverage[toml]")

    try:
        session.run(
            "coverage",
            "run",
            "--parallel",
            "-m",
            "pytest",
            "--durations=10",
            *session.posargs,
        )
    finally:
        if session.interactive:
            session.notify("coverage", posargs=[])


@nox.session
def coverage(session: nox.Session) -> None:
    """Generate coverage report."""
    args = session.posargs or ["report", "-m"]

    session.install("coverage[toml]")

    if not session.posargs and any(Path().glob(".coverage.*")):
        session.run("coverage", "combine")

    session.run("coverage", *args)


@nox.session
def lint(session: nox.Session) -> None:
    """Check code style with ruff."""
    args = session.posargs or locations
    session.install("ruff")
    session.run("ruff", "check", *args)
