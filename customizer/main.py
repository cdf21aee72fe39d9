"""
Linux Auto-Customizer — CLI entrypoint.

Usage:
    customizer --help
    customizer init
    customizer install vlc pycharm --favorites
    customizer list
    customizer reconcile keybindings
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from customizer import __version__
from customizer.core.observability.logging_config import level_for_quietness, setup_logging


def _status_line(label: str, receipt_status: str, detail: str = "") -> None:
    marker, color = {
        "ok": ("✓", "green"),
        "partial": ("◐", "yellow"),
        "skipped": ("⊘", "yellow"),
        "failed": ("✗", "red"),
    }.get(receipt_status, ("•", "white"))
    click.secho(f"   {marker} {label}", fg=color, nl=not detail)
    if detail:
        click.echo(f" ({detail})")


@click.group()
@click.version_option(version=__version__, prog_name="customizer")
@click.option("--verbose", "-v", count=True, help="More output (repeatable).")
@click.option("--quiet", "-q", count=True, help="Less output (repeatable).")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to customizer.yml (default: CUSTOMIZER_CONFIG or ~/.config/customizer).",
)
@click.option(
    "--features",
    "features_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to the feature table (default: bundled features.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    quiet: int,
    debug: bool,
    config_path: str | None,
    features_path: str | None,
) -> None:
    """Linux Auto-Customizer — install and wire up desktop features."""
    ctx.ensure_object(dict)
    quietness = max(0, min(2, 1 - verbose + quiet))
    # None keeps the quietness of customizer.yml
    ctx.obj["quietness"] = quietness if (verbose or quiet) else None
    ctx.obj["verbose"] = quietness == 0
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["features_path"] = Path(features_path) if features_path else None

    # ── Logging setup (at process start) ────────────────────────
    # Without options or env var, customizer.yml re-levels it once loaded
    ctx.obj["level_chosen"] = bool(debug or verbose or quiet or os.environ.get("CUSTOMIZER_LOG_LEVEL"))
    if debug or verbose or quiet:
        level = level_for_quietness(quietness, debug=debug)
    else:
        level = os.environ.get("CUSTOMIZER_LOG_LEVEL", "INFO")
    _configure_logging(level, debug)


def _configure_logging(level: str, debug: bool = False) -> None:
    setup_logging(
        level=level,
        log_file=os.environ.get("CUSTOMIZER_LOG_FILE"),
        log_file_level=os.environ.get("CUSTOMIZER_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


def _apply_configured_quietness(ctx: click.Context, flags) -> None:
    """Use the quietness of customizer.yml unless the command line chose a level."""
    if ctx.obj.get("level_chosen"):
        return
    ctx.obj["verbose"] = flags.quietness == 0
    _configure_logging(level_for_quietness(flags.quietness))


def _context(ctx: click.Context, flag_overrides: dict | None = None, mock: bool = False):
    """Build the install context, exiting with a red message on bad config."""
    from customizer.core.config.loader import ConfigError
    from customizer.core.use_cases.install import build_context

    overrides = {"quietness": ctx.obj.get("quietness"), **(flag_overrides or {})}
    try:
        install_ctx = build_context(
            config_path=ctx.obj.get("config_path"),
            features_path=ctx.obj.get("features_path"),
            flag_overrides=overrides,
            mock_mode=mock,
        )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    _apply_configured_quietness(ctx, install_ctx.flags)
    return install_ctx


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def init(ctx: click.Context, as_json: bool) -> None:
    """Create customizer folders, registries and built-in scripts."""
    from customizer.core.use_cases.install import run_init

    install_ctx = _context(ctx)
    result = run_init(install_ctx, ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.secho(f"✅ Initialized {install_ctx.paths.customizer_dir}", fg="green", bold=True)


@cli.command()
@click.argument("keys", nargs=-1, required=True)
@click.option("--cache/--no-cache", default=None, help="Reuse cached downloads.")
@click.option("--favorites/--no-favorites", default=None, help="Pin launchers to the dock.")
@click.option("--autostart/--no-autostart", default=None, help="Start features with the session.")
@click.option(
    "--upgrade",
    type=click.IntRange(0, 2),
    default=None,
    help="Before installing: 1 = update package lists, 2 = also upgrade (root only).",
)
@click.option("--skip-init", is_flag=True, help="Don't (re)initialize standing structures.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--mock", is_flag=True, help="Use mock adapter (no real execution).")
@click.pass_context
def install(
    ctx: click.Context,
    keys: tuple[str, ...],
    cache: bool | None,
    favorites: bool | None,
    autostart: bool | None,
    upgrade: int | None,
    skip_init: bool,
    as_json: bool,
    mock: bool,
) -> None:
    """Install features by key.

    Examples:

        customizer install vlc

        sudo customizer install vlc gimp --favorites --upgrade 1

        customizer install pycharm --autostart --no-cache
    """
    from customizer.core.engine.context import FatalInstallError
    from customizer.core.use_cases.install import run_install

    install_ctx = _context(
        ctx,
        {"cache": cache, "favorites": favorites, "autostart": autostart, "upgrade": upgrade},
        mock=mock,
    )

    try:
        result = run_install(
            install_ctx,
            list(keys),
            skip_init=skip_init,
            config_path=ctx.obj.get("config_path"),
        )
    except FatalInstallError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error or not result.report.all_ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report

    mode_label = "[mock] " if mock else ""
    click.secho(f"\n📦 {mode_label}install — {len(report.features)} feature(s)", fg="cyan", bold=True)
    for feature_report in report.features:
        _status_line(feature_report.key, feature_report.status)
        for receipt in feature_report.receipts:
            if receipt.failed and receipt.error:
                for line in receipt.error.split("\n")[:5]:
                    click.echo(f"     │ {line}")
            elif ctx.obj.get("verbose") and receipt.output:
                for line in receipt.output.split("\n")[:10]:
                    click.echo(f"     │ {line}")

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(report.status, "white")
    click.secho(f"   Result: {report.status}", fg=status_color, bold=True)
    click.echo()

    if not report.all_ok:
        sys.exit(1)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_features(ctx: click.Context, as_json: bool) -> None:
    """List the features of the feature table."""
    from customizer.core.config.features_loader import load_features
    from customizer.core.config.loader import ConfigError

    try:
        features = load_features(ctx.obj.get("features_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        data = [
            {
                "key": f.key,
                "name": f.name,
                "description": f.description,
                "installation_type": f.installation_type.value if f.installation_type else None,
            }
            for f in features.values()
        ]
        click.echo(json.dumps(data, indent=2))
        return

    click.secho(f"\n🧩 Features: {len(features)}", fg="cyan", bold=True)
    for feature in features.values():
        itype = feature.installation_type.value if feature.installation_type else "environmental"
        description = f" — {feature.description}" if feature.description else ""
        click.echo(f"   • {feature.key} [{itype}]{description}")
    click.echo()


@cli.command()
@click.argument(
    "target",
    type=click.Choice(["favorites", "keybindings", "all"]),
    default="all",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reconcile(ctx: click.Context, target: str, as_json: bool) -> None:
    """Apply queued favorites and keybindings to the desktop (run at login)."""
    from customizer.core.config.loader import ConfigError, load_config
    from customizer.core.use_cases.reconcile import run_reconcile

    try:
        config = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    _apply_configured_quietness(ctx, config.flags)

    result = run_reconcile(config.paths, target)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    for entry in result.favorites_added:
        _status_line(f"favorite {entry}", "ok")
    if target in ("keybindings", "all"):
        click.echo(f"   Active keybindings: {len(result.active_keybindings)}")


if __name__ == "__main__":
    cli()
