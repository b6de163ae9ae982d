"""
Command-line interface for emulator IAM policies.

Usage:
    iam-policy policy validate [policy.yaml | policies/]
    iam-policy policy init --template advanced --output policy.yaml
    iam-policy config set iam-mode strict
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .core.codec import PolicyError, save_policy
from .core.config import CONFIG_ENV_VAR, Config, ConfigError
from .core.templates import TEMPLATES, build_template
from .core.validator import Validator, iter_policy_files


@click.group()
@click.version_option(version="1.0.0")
@click.option(
    "--config",
    "config_path",
    envvar=CONFIG_ENV_VAR,
    type=click.Path(dir_okay=False),
    help="Path to the tool configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str, verbose: bool):
    """IAM policy tooling for the GCP emulator stack."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_path": config_path}


def _load_config(ctx: click.Context) -> Config:
    try:
        return Config.load(ctx.obj["config_path"])
    except ConfigError as e:
        click.echo(click.style(f"✗ {e}", fg="red"))
        sys.exit(1)


# ============================================================================
# policy
# ============================================================================

@cli.group()
def policy():
    """Validate, initialize, and manage policy.yaml files."""
    pass


@policy.command()
@click.argument("path", required=False)
@click.pass_context
def validate(ctx: click.Context, path: str):
    """
    Validate policy file syntax and structure.

    Without arguments, validates the configured policy file (./policy.yaml
    by default). A directory validates every YAML file under it.
    """
    if path is None:
        path = _load_config(ctx).policy_file

    policy_files = list(iter_policy_files(path))
    if not policy_files:
        click.echo("No policy files found")
        return

    validator = Validator()
    failed = False

    for policy_file in policy_files:
        click.echo(click.style(f"Validating {policy_file}...", fg="cyan"))

        pol, result = validator.validate_file(policy_file)
        if pol is None:
            click.echo(click.style(f"✗ {result.errors[0]}", fg="red"))
            failed = True
            continue

        if result.valid:
            click.echo(click.style("✓ Policy is valid", fg="green"))
            counts = pol.summary()
            click.echo(f"\n{counts['roles']} roles defined")
            click.echo(f"{counts['groups']} groups defined")
            click.echo(f"{counts['projects']} projects configured")
            for line in result.render():
                click.echo(click.style(f"  {line}", fg="yellow"))
        else:
            failed = True
            click.echo(click.style("✗ Validation failed", fg="red"))
            click.echo("\nErrors:")
            for line in result.render():
                click.echo(click.style(f"  {line}", fg="red"))

    if failed:
        sys.exit(1)


@policy.command()
@click.option(
    "--template",
    "-t",
    default="basic",
    type=click.Choice(TEMPLATES),
    help="Template to use",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing policy file")
@click.option("--output", "-o", default="policy.yaml", help="Output file path")
def init(template: str, force: bool, output: str):
    """Create a new policy file from a template."""
    output_path = Path(output)

    if not force and output_path.exists():
        click.echo(click.style(
            f"✗ File {output} already exists (use --force to overwrite)", fg="red"
        ))
        sys.exit(1)

    click.echo(click.style(f"Creating policy file: {output}", fg="cyan"))
    click.echo(click.style(f"Template: {template}", fg="cyan"))

    try:
        save_policy(build_template(template), output_path)
    except (OSError, PolicyError) as e:
        click.echo(click.style(f"✗ Failed to save policy: {e}", fg="red"))
        sys.exit(1)

    click.echo(click.style("✓ Policy file created successfully", fg="green"))
    click.echo("\nEdit the file to customize for your project:")
    click.echo(f"  vim {output}")


# ============================================================================
# config
# ============================================================================

@cli.group()
def config():
    """Get, set, or reset configuration values."""
    pass


@config.command("get")
@click.pass_context
def config_get(ctx: click.Context):
    """Display configuration values."""
    click.echo(_load_config(ctx).display(), nl=False)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str):
    """
    Set a configuration value and save to the config file.

    Available keys: iam-mode (off|permissive|strict), trace (true|false),
    pull-on-start (true|false), policy-file.
    """
    cfg = _load_config(ctx)

    try:
        cfg.set_value(key, value)
        cfg.save(ctx.obj["config_path"])
    except (OSError, ConfigError) as e:
        click.echo(click.style(f"✗ {e}", fg="red"))
        sys.exit(1)

    click.echo(click.style("✓ Configuration updated", fg="green"))
    click.echo(f"\n{key}: {value}")


@config.command("reset")
@click.pass_context
def config_reset(ctx: click.Context):
    """Reset all configuration values to their defaults."""
    try:
        Config().save(ctx.obj["config_path"])
    except OSError as e:
        click.echo(click.style(f"✗ Failed to save config: {e}", fg="red"))
        sys.exit(1)

    click.echo(click.style("✓ Configuration reset to defaults", fg="green"))


if __name__ == "__main__":
    cli()
