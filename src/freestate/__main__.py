"""Allow ``python -m freestate``."""

from freestate.cli.typer_app import app

if __name__ == "__main__":
    app()
