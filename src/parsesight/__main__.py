"""
ParseSight CLI Entry Point

Allows running the package as a module: python -m parsesight
"""


def main():
    """Main entry point for the CLI."""
    from parsesight.cli import app

    app()


if __name__ == "__main__":
    main()
