"""
CLI interface for flatcrunner.

Thin wrapper over FlatcRunner: loads a schema directory from disk, runs one
operation through a runner and writes the result.
"""

import sys
from pathlib import Path

import click

from flatcrunner import __version__
from flatcrunner.errors import FlatcRunnerError
from flatcrunner.generators.code import CodeGenOptions, Language
from flatcrunner.generators.json import JsonOptions
from flatcrunner.schema import BinaryInput
from flatcrunner.utils import print_error, print_info, print_success, print_warning, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="flatcrunner")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: $FLATCRUNNER_HOME/config.yaml)",
)
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx, config_path, log_level):
    """
    flatcrunner - run flatc operations in a sandboxed engine.
    """
    from flatcrunner.config import load_config

    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except FlatcRunnerError as e:
        print_error(str(e))
        raise SystemExit(1)

    setup_logging(log_level or config.log_level, config.log_format)
    ctx.obj["config"] = config


def _runner(ctx):
    from flatcrunner.runner import create_runner

    return create_runner(ctx.obj["config"])


def _load_schema(schema_dir: Path, entry: str):
    from flatcrunner.schema_loader import load_schema_dir

    try:
        return load_schema_dir(schema_dir, entry)
    except (FileNotFoundError, ValueError) as e:
        raise click.UsageError(str(e))


@main.command("flatc-version")
@click.pass_context
def flatc_version(ctx):
    """Print the version of the configured flatc."""
    try:
        with _runner(ctx) as runner:
            click.echo(runner.version())
    except (FlatcRunnerError, OSError) as e:
        print_error(str(e))
        raise SystemExit(1)


@main.command()
@click.argument("schema_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("entry")
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), required=True,
              help="Where to write the binary")
@click.pass_context
def encode(ctx, schema_dir, entry, json_file, output):
    """Serialize JSON_FILE to a FlatBuffer binary."""
    schema = _load_schema(schema_dir, entry)
    try:
        with _runner(ctx) as runner:
            data = runner.encode(schema, json_file.read_bytes())
    except (FlatcRunnerError, OSError) as e:
        print_error(str(e))
        raise SystemExit(1)

    output.write_bytes(data)
    print_success(f"Wrote {len(data)} bytes to {output}")


@main.command()
@click.argument("schema_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("entry")
@click.argument("binary_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path),
              help="Where to write the JSON (default: stdout)")
@click.option("--defaults-json", is_flag=True, help="Emit fields holding default values")
@click.option("--no-raw-binary", is_flag=True, help="Require a file identifier in the binary")
@click.pass_context
def decode(ctx, schema_dir, entry, binary_file, output, defaults_json, no_raw_binary):
    """Convert BINARY_FILE back to JSON."""
    schema = _load_schema(schema_dir, entry)
    config = ctx.obj["config"]
    options = JsonOptions(
        raw_binary=not no_raw_binary,
        defaults_json=defaults_json,
        encoding="utf-8",
    )
    binary_input = BinaryInput(
        path=f"/decode/input.{config.binary_extension}",
        data=binary_file.read_bytes(),
    )
    try:
        with _runner(ctx) as runner:
            text = runner.decode(schema, binary_input, options)
    except (FlatcRunnerError, OSError) as e:
        print_error(str(e))
        raise SystemExit(1)

    if output is None:
        click.echo(text)
    else:
        output.write_text(text, encoding="utf-8")
        print_success(f"Wrote JSON to {output}")


@main.command()
@click.argument("schema_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("entry")
@click.argument("language", type=click.Choice([lang.value for lang in Language]))
@click.option("-o", "--output-dir", type=click.Path(file_okay=False, path_type=Path), required=True,
              help="Directory to write generated files into")
@click.option("--gen-object-api", is_flag=True)
@click.option("--gen-onefile", is_flag=True)
@click.option("--python-typing", is_flag=True)
@click.option("--python-version", default=None)
@click.option("--no-includes", is_flag=True)
@click.option("--gen-compare", is_flag=True)
@click.option("--gen-name-strings", is_flag=True)
@click.option("--reflect-names", is_flag=True)
@click.option("--reflect-types", is_flag=True)
@click.option("--gen-json-emit", is_flag=True)
@click.option("--keep-prefix", is_flag=True)
@click.option("--preserve-case", is_flag=True)
@click.pass_context
def generate(ctx, schema_dir, entry, language, output_dir, **flags):
    """Generate LANGUAGE bindings for a schema."""
    schema = _load_schema(schema_dir, entry)
    options = CodeGenOptions(**flags)
    try:
        with _runner(ctx) as runner:
            files = runner.generate(schema, language, options=options)
    except (FlatcRunnerError, OSError) as e:
        print_error(str(e))
        raise SystemExit(1)

    if not files:
        print_warning(f"flatc produced no {language} files")
        return

    for relative, text in files.items():
        target = output_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        print_info(relative)
    print_success(f"Generated {len(files)} {language} files in {output_dir}")


if __name__ == "__main__":
    sys.exit(main())
