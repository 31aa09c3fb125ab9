"""Flask CLI commands."""

import logging

import click

logger = logging.getLogger(__name__)


def register_cli(app):
    @app.cli.command("import-legacy-json")
    @click.argument("data_dir", type=click.Path(exists=True, file_okay=False))
    def import_legacy_json_cmd(data_dir):
        """Load reports.json, users.json and courses.json from DATA_DIR."""
        from faculty_reporting.services.legacy_import import import_directory

        summary = import_directory(data_dir)
        for filename, result in summary.items():
            if "error" in result:
                click.echo(f"{filename}: skipped ({result['error']})", err=True)
            elif result.get("missing"):
                click.echo(f"{filename}: not found")
            else:
                click.echo(f"{filename}: imported {result['imported']}, skipped {result['skipped']}")
