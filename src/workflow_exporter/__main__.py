"""Allow ``python -m workflow_exporter``."""

from workflow_exporter.cli import main

main()
