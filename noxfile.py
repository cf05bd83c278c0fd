"""Developer tasks: ``nox`` runs lint, unit and integration; ``nox -s migrations`` checks Alembic."""
import os
from pathlib import Path

import nox

nox.options.reuse_existing_virtualenvs = True
nox.options.sessions = ["lint", "unit", "integration"]

PROJECT_WITH_TESTS = ("-e", ".[test]")

# Forwarded from the caller's shell when set
FORWARDED_ENV = ("DATABASE_URL", "SECRET_KEY", "ADMIN_PASSWORD", "LOG_LEVEL", "REDIS_URL")


def prepare(session, *extra_packages):
    session.install(*PROJECT_WITH_TESTS, *extra_packages)
    session.env["PYTHONPATH"] = str(Path.cwd())
    session.env["ENVIRONMENT"] = "development"
    session.env.update({name: os.environ[name] for name in FORWARDED_ENV if name in os.environ})


def pytest_args(session, default_path, marker):
    return [*(session.posargs or [default_path]), "-m", marker, "-vv", "--tb=short"]


@nox.session
def lint(session):
    """isort, black and flake8 on app/ and tests/, mypy on app/."""
    session.install("isort", "black", "flake8", "mypy")
    for tool, *args in (
        ("isort", "--check-only"),
        ("black", "--check"),
        ("flake8",),
    ):
        session.run(tool, *args, "app/", "tests/")
    session.run("mypy", "app/")


@nox.session
def unit(session):
    """Engine rules, services and core helpers, with coverage.

    ``nox -s unit -- tests/unit/test_engine/test_rules.py`` runs a single file.
    """
    prepare(session)
    session.run(
        "pytest",
        *pytest_args(session, "tests/unit", "unit"),
        "--cov=app",
        "--cov-report=term-missing",
        "--cov-report=html:.nox/htmlcov",
        "--cov-report=xml",
        "--cov-fail-under=80",
    )


@nox.session
def integration(session):
    """HTTP tests through FastAPI's TestClient, including the rate limiter."""
    prepare(session)
    session.run("pytest", *pytest_args(session, "tests/integration", "integration"))


@nox.session
def migrations(session):
    """Upgrade a scratch SQLite database to head and back down to base."""
    prepare(session)
    scratch = Path(session.create_tmp()) / "migrations.db"
    session.env["DATABASE_URL"] = f"sqlite:///{scratch}"
    session.run("alembic", "upgrade", "head")
    session.run("alembic", "downgrade", "base")
