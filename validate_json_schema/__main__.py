"""Module entrypoint for `python -m validate_json_schema`."""

from .cli.run_cli import main


if __name__ == "__main__":
    main()
