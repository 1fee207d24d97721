"""Entry point: python -m backoffice"""

from backoffice.cli import cli

if __name__ == "__main__":
    cli()
