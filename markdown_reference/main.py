"""Entry point for ``python -m markdown_reference.main``.

Delegates to the CLI, which loads configuration and sets up logging.
"""

from markdown_reference.cli.commands import reference


def main() -> None:
    """Launch the CLI."""
    reference(prog_name="markdown-reference")


if __name__ == "__main__":
    main()
