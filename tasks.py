from pathlib import Path

from invoke import task
from invoke.exceptions import Exit

SOURCES = "src tests tasks.py"
DEFAULT_DATABASE = Path(__file__).resolve().parent / "friendly_slugs.db"


@task
def lint(c):
    c.run(f"ruff check {SOURCES}")


@task
def format_check(c):
    c.run(f"ruff format --check {SOURCES}")


@task(help={"k": "Only run tests matching this keyword expression"})
def test(c, k=None):
    c.run(f'pytest -k "{k}"' if k else "pytest")


@task
def smoke(c):
    """Run the codec commands of the installed CLI."""
    c.run("friendly-slugs --version")
    c.run("friendly-slugs parse my-title--2")
    c.run("friendly-slugs format my-title --sequence 2")
    c.run('friendly-slugs normalize "¡Feliz año!" --strip-diacritics')


@task(help={"config": "YAML configuration file to check"})
def check_config(c, config):
    if not Path(config).exists():
        raise Exit(f"Missing configuration file: {config}")
    c.run(f"friendly-slugs validate {config}")


@task
def clean_db(_):
    """Remove the SQLite database created by the default configuration."""
    if DEFAULT_DATABASE.exists():
        DEFAULT_DATABASE.unlink()
        print(f"Removed {DEFAULT_DATABASE}")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
    smoke(c)
