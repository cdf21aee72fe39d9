"""Allow ``python -m customizer`` (used by the session-start scripts)."""

from customizer.main import cli

if __name__ == "__main__":
    cli()
