"""Allow ``python -m termsetup``."""

from termsetup.main import cli

if __name__ == "__main__":
    cli()
