#!/usr/bin/env python3
"""FluentMasker CLI: mask JSON records with a YAML masking profile."""

import json
import sys
from typing import IO, Any, Optional

import click

from fluentmasker import __version__
from fluentmasker.core.config import MaskerConfig, get_masker_config
from fluentmasker.core.exceptions import FluentMaskerError
from fluentmasker.observability.logging import configure_logging
from fluentmasker.profiles import RULE_CATALOGUE, CompiledProfile, compile_profile, load_profile
from fluentmasker.rules.numeric import BUCKET_PRESETS
from fluentmasker.serialization import dumps


@click.group()
@click.version_option(version=__version__, prog_name="FluentMasker")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: FLUENTMASKER_LOG_LEVEL or WARNING)",
)
@click.option(
    "--log-format",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Log format (default: FLUENTMASKER_LOG_FORMAT or text)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """FluentMasker - rule-based masking of structured records."""
    ctx.ensure_object(dict)
    env_config = get_masker_config()
    config = MaskerConfig(
        default_coverage_mode=env_config.default_coverage_mode,
        log_level=log_level or env_config.log_level,
        log_format=log_format or env_config.log_format,
        json_indent=env_config.json_indent,
    )
    configure_logging(config)
    ctx.obj["config"] = config


def _load(profile_file: str, coverage: Optional[str]) -> CompiledProfile:
    try:
        profile = load_profile(profile_file)
        if coverage:
            profile = profile.model_copy(update={"coverage": coverage})
        return compile_profile(profile)
    except FluentMaskerError as e:
        raise click.ClickException(e.message) from e


def _read_records(stream: IO[str], jsonl: bool) -> tuple[list[Any], bool]:
    """Decode input; the flag tells whether it was a single object."""
    text = stream.read()
    try:
        if jsonl:
            return [json.loads(line) for line in text.splitlines() if line.strip()], False
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON input: {e}") from e
    if isinstance(data, list):
        return data, False
    return [data], True


@cli.command()
@click.argument("profile_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("input_file", type=click.File("r", encoding="utf-8"))
@click.option(
    "--output",
    "-o",
    type=click.File("w", encoding="utf-8"),
    default="-",
    help="Output file path (default: stdout)",
)
@click.option(
    "--coverage",
    type=click.Choice(["exclude", "include"]),
    help="Override the profile's coverage mode for unbound fields",
)
@click.option("--indent", type=click.IntRange(min=0), help="Indent the JSON output")
@click.option("--strict", is_flag=True, help="Exit with an error if any field failed to mask")
@click.option("--jsonl", is_flag=True, help="Read and write JSON Lines")
@click.pass_context
def mask(
    ctx: click.Context,
    profile_file: str,
    input_file: IO[str],
    output: IO[str],
    coverage: Optional[str],
    indent: Optional[int],
    strict: bool,
    jsonl: bool,
) -> None:
    """Mask the JSON records in INPUT_FILE ('-' for stdin) with PROFILE_FILE."""
    compiled = _load(profile_file, coverage)
    records, single = _read_records(input_file, jsonl)
    if indent is None:
        indent = ctx.obj["config"].json_indent

    masked: list[Any] = []
    failures = 0
    for index, data in enumerate(records):
        try:
            result = compiled.mask(data)
        except FluentMaskerError as e:
            raise click.ClickException(f"Record {index}: {e.message}") from e
        for error in result.errors:
            click.echo(f"Record {index}: {error}", err=True)
        if not result.is_success:
            failures += 1
        masked.append(result.record)

    if jsonl:
        for item in masked:
            output.write(dumps(item) + "\n")
    else:
        payload = masked[0] if single else masked
        output.write(dumps(payload, indent=indent) + "\n")

    if failures:
        click.echo(f"{failures} of {len(records)} record(s) masked with errors", err=True)
        if strict:
            ctx.exit(1)


@cli.command()
@click.argument("profile_file", type=click.Path(exists=True, dir_okay=False))
def validate(profile_file: str) -> None:
    """Validate a masking profile and show what it binds."""
    compiled = _load(profile_file, None)
    _describe(compiled, indent="")
    click.echo("✓ Profile is valid")


def _describe(compiled: CompiledProfile, indent: str) -> None:
    masker = compiled.masker
    click.echo(f"{indent}{compiled.record_type.__name__} (coverage: {masker.coverage_mode.value})")
    for spec in compiled.profile.fields:
        binding = masker.get_binding(spec.name)
        if spec.each is not None:
            click.echo(f"{indent}  {spec.name}: each item of")
            _describe(compiled.item_profiles[spec.name], indent + "    ")
        elif binding is None:
            click.echo(f"{indent}  {spec.name}: unbound")
        else:
            rules = ", ".join(rule.name for rule in binding.rules)
            click.echo(f"{indent}  {spec.name} ({spec.type}): {rules}")


@cli.command()
def rules() -> None:
    """List the rule names profiles can use."""
    for kind, names in RULE_CATALOGUE.items():
        click.echo(f"{kind}:")
        for name in names:
            click.echo(f"  {name}")
    click.echo("bucket presets:")
    for name in sorted(BUCKET_PRESETS):
        click.echo(f"  {name}")


@cli.command()
def version() -> None:
    """Show FluentMasker version."""
    click.echo(f"FluentMasker v{__version__}")


def main() -> int:
    """Main entry point."""
    try:
        exit_code = cli(standalone_mode=False)
        return exit_code if isinstance(exit_code, int) else 0
    except click.exceptions.Exit as e:
        return e.exit_code
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
