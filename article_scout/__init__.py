"""
ArticleScout package initializer.
Defines package version and exposes the CLI entry point.
"""
__version__ = "0.1.0"


def main_cli() -> None:
    """Run the command-line interface (``python -m article_scout``)."""
    from article_scout.cli import cli

    cli()
