"""CLI application for productdeps."""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from productdeps.config import load_config
from productdeps.discover import discover, load_blob_files
from productdeps.errors import ProductDependencyError
from productdeps.fsutil import atomic_write_text
from productdeps.lockfile import LockfileCodec, LockfileOutcome
from productdeps.manifest import build_manifest, render_report, write_manifest
from productdeps.resolve import ResolutionEngine
from productdeps.versions import VersionKind, classify

console = Console()
logger = logging.getLogger("productdeps")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )


def format_outcome(outcome: LockfileOutcome, path: Path) -> str | None:
    """Describe a lockfile sync for the console."""
    if outcome is LockfileOutcome.CREATED:
        return f"Created {path}"
    if outcome is LockfileOutcome.UPDATED:
        return f"Updated {path}"
    if outcome is LockfileOutcome.DELETED:
        return f"Deleted {path}"
    return None


app = typer.Typer(
    name="productdeps",
    help="productdeps - Resolve product dependencies and write deployment manifests",
    add_completion=False,
)


@app.command()
def resolve(
    config_path: Path = typer.Argument(help="Path to the product configuration (product.yml)"),
    discovered: list[Path] = typer.Option(
        [], "--discovered", "-d", help="Recommendation blob extracted from an upstream artifact"
    ),
    write_locks: bool = typer.Option(
        False, "--write-locks", envvar="PRODUCTDEPS_WRITE_LOCKS", help="Rewrite the lockfile instead of checking it"
    ),
    manifest_path: Path | None = typer.Option(None, "--manifest", "-m", help="Override the manifest output path"),
    lockfile_path: Path | None = typer.Option(None, "--lockfile", "-l", help="Override the lockfile path"),
    report_out: Path | None = typer.Option(None, "--report-out", help="Also write the resolved dependency report"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Resolve product dependencies, check the lockfile and write the manifest."""
    configure_logging(verbose)

    try:
        config = load_config(config_path)
        engine = ResolutionEngine(
            config.product_id,
            ignored=config.ignored_product_dependencies,
            optional=config.optional_product_dependencies,
            optional_conflict_policy=config.optional_conflict_policy,
        )
        result = engine.resolve(
            config.declared_dependencies(),
            discover(load_blob_files(discovered)),
        )
        for advisory in result.advisories:
            logger.warning(advisory.message)

        # Manifest is validated before the lockfile is touched
        manifest = build_manifest(
            config.product_id,
            config.product_type,
            config.product_version,
            result.report,
            config.manifest_extensions,
        )

        lockfile = lockfile_path or config.lockfile
        codec = LockfileCodec(lockfile, write_locks=write_locks)
        outcome = codec.sync(result.report, config.in_repo_products, config.product_version)
        message = format_outcome(outcome, lockfile)
        if message:
            console.print(message, soft_wrap=True)

        output = manifest_path or config.manifest
        write_manifest(output, manifest)
        if report_out:
            atomic_write_text(report_out, render_report(result.report))

        console.print(
            f"Resolved {len(result.report)} product dependencies for {config.product_id}, wrote {output}",
            soft_wrap=True,
        )

    except (ProductDependencyError, OSError) as e:
        console.print(f"Error: {e}", style="red", markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(1)


@app.command("classify")
def classify_versions(
    versions: list[str] = typer.Argument(help="Version strings to classify"),
    format_type: str = typer.Option("table", "--format", help="Output format: table or json"),
) -> None:
    """Show how version strings are classified."""
    rows = {version: classify(version) for version in versions}

    if format_type == "json":
        payload = {version: sorted(kind.value for kind in kinds) for version, kinds in rows.items()}
        console.print_json(json.dumps(payload))
    else:
        table = Table("version", *(kind.value for kind in VersionKind))
        for version, kinds in rows.items():
            table.add_row(version, *("yes" if kind in kinds else "" for kind in VersionKind))
        console.print(table)

    # Exit code 2 when any version is invalid
    if any(VersionKind.INVALID in kinds for kinds in rows.values()):
        raise typer.Exit(2)


if __name__ == "__main__":
    app()
