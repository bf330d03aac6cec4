"""Allow running as `python -m fdb_exporter`."""

from fdb_exporter.cli.main import main

if __name__ == "__main__":
    main()
