"""
Entry point for Alert Docgen.

This module provides the main entry point that delegates to the package's CLI.
"""

from alert_docgen.main import cli

if __name__ == "__main__":
    cli()
