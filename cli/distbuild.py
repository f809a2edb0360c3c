import logging
from pathlib import Path

import click


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )


@click.group()
def distbuild():
    """Static site build utilities."""
    pass


@distbuild.command("build")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML config file (default: distbuild.yml if present)")
@click.option("--src", "src_path", type=click.Path(file_okay=False), help="Source directory")
@click.option("--dist", "dist_path", type=click.Path(file_okay=False), help="Output directory")
@click.option("--dev", "development", is_flag=True, help="Development build (no inlining or minification)")
@click.option("--no-convert", is_flag=True, help="Keep page.html instead of page/index.html")
@click.option("--verbose", is_flag=True, help="Debug logging")
def build(config_path, src_path, dist_path, development, no_convert, verbose):
    """Build the dist directory from the source directory."""
    _setup_logging(verbose)

    from pipeline.config import load_config
    from pipeline.errors import BuildError

    try:
        config = load_config(
            config_path,
            src_path=Path(src_path) if src_path else None,
            dist_path=Path(dist_path) if dist_path else None,
            development=True if development else None,
            convert_page_to_directory=False if no_convert else None,
        )
    except ValueError as e:
        click.echo(f"[ERR] {e}")
        raise SystemExit(1) from e

    mode = "development" if config.development else "production"
    click.echo(f"[INFO] Building {config.src_path} -> {config.dist_path} ({mode})")

    try:
        from pipeline.builder import BuildDriver

        driver = BuildDriver(config)
        result = driver.build()
    except BuildError as e:
        click.echo(f"[ERR] {e}")
        raise SystemExit(1) from e

    click.echo(f"[INFO] Files processed: {len(result.files)}")
    for bundle in result.bundles:
        click.echo(f"  ✓ {bundle}")
    if result.warnings:
        click.echo(f"[WARN] {len(result.warnings)} warning(s):")
        for warning in result.warnings:
            click.echo(f"  ✗ {warning}")
    click.echo(f"[OK] Build complete: {config.dist_path}")


@distbuild.command("scan")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML config file (default: distbuild.yml if present)")
def scan(config_path):
    """List the dist files a build would process, in processing order."""
    from pipeline.config import load_config
    from pipeline.errors import BuildError
    from pipeline.scanner import SourceScanner

    try:
        config = load_config(config_path)
        files = SourceScanner(config).scan()
    except (ValueError, BuildError) as e:
        click.echo(f"[ERR] {e}")
        raise SystemExit(1) from e

    for path in files:
        click.echo(str(path))
    click.echo(f"[INFO] {len(files)} file(s)")


if __name__ == "__main__":
    distbuild()
