#!/usr/bin/env python3
"""
Contract Script ABI - Command Line Interface

Inspect compiled contract artifacts, render locking scripts from constructor
arguments, recover arguments and state from existing scripts, and encode or
decode script numbers.
"""

import sys
import json
import logging
import functools
from typing import Optional, Dict, Any, List, Tuple

import click
import yaml

from contract import ContractDefinition, ContractError
from contract.values import Value
from crypto.exceptions import CryptoError
from scripts.exceptions import ScriptError
from scripts.number import encode_script_num, decode_script_num
from scripts.script import Script, ScriptChunk

from cli import __version__
from cli.config import ConfigurationManager, OUTPUT_FORMATS, SCRIPT_FORMATS

# Loggers the CLI attaches its stderr handler to
LOGGER_NAMES = ('contract', 'scripts', 'crypto', 'cli')

# Handler installed by the most recent invocation
_log_handler: Optional[logging.Handler] = None


class CLIContext:
    """Global CLI context for sharing state across commands."""

    def __init__(self):
        self.config_file: Optional[str] = None
        self.profile: Optional[str] = None
        self.output_format: Optional[str] = None
        self.verbose: int = 0
        self.config: Optional[ConfigurationManager] = None
        self.logger = logging.getLogger('cli')

    def setup_logging(self):
        """Configure logging based on verbosity level and configuration."""
        global _log_handler

        if self.verbose >= 2:
            level = logging.DEBUG
        elif self.verbose == 1:
            level = logging.INFO
        else:
            level = getattr(logging, str(self.config.get('logging.level', 'WARNING')).upper(), logging.WARNING)

        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        for name in LOGGER_NAMES:
            logger = logging.getLogger(name)
            if _log_handler is not None:
                logger.removeHandler(_log_handler)
            logger.addHandler(handler)
            logger.setLevel(level)
        _log_handler = handler

    def load_config(self):
        """Load layered configuration."""
        self.config = ConfigurationManager(self.config_file, self.profile)
        self.config.load()
        if self.output_format is None:
            self.output_format = self.config.get('output.format', 'table')

    @property
    def script_format(self) -> str:
        return self.config.get('script.format', 'asm')

    def load_definition(self, artifact: str) -> ContractDefinition:
        """Load a contract definition by path or by name from the search paths."""
        path = self.config.find_artifact(artifact)
        self.logger.info(f"Loading artifact {path}")
        return ContractDefinition.load(path)

    def parse_script(self, text: str, script_format: Optional[str] = None) -> Script:
        if (script_format or self.script_format) == 'hex':
            return Script.from_hex(text.strip())
        return Script.from_asm(text)

    def format_script(self, script: Optional[Script], script_format: Optional[str] = None) -> Optional[str]:
        if script is None:
            return None
        if (script_format or self.script_format) == 'hex':
            return script.to_hex()
        return script.to_asm()

    def output(self, data: Any, format_override: Optional[str] = None):
        """Output data in specified format."""
        format_type = format_override or self.output_format

        if format_type == "json":
            click.echo(json.dumps(data, indent=2, default=str))
        elif format_type == "yaml":
            click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), nl=False)
        else:
            self._output_table(data)

    def _output_table(self, data: Any, indent: str = ""):
        """Output data in table format."""
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, (dict, list)) and value:
                    click.echo(f"{indent}{key}")
                    self._output_table(value, indent + "  ")
                else:
                    click.echo(f"{indent}{key:20} {'' if value is None else value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, (dict, list)):
                    self._output_table(item, indent + "  ")
                else:
                    click.echo(f"{indent}{item}")
        else:
            click.echo(f"{indent}{data}")


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


def handle_cli_error(func):
    """Decorator turning library errors into a message and a non-zero exit."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ContractError, ScriptError, CryptoError, FileNotFoundError, ValueError) as e:
            ctx = click.get_current_context().find_object(CLIContext)
            if ctx is not None and ctx.verbose >= 2:
                ctx.logger.exception(f"{type(e).__name__} in {func.__name__}")
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    return wrapper


def parse_json_value(text: str) -> Any:
    """Parse a command line value as JSON, keeping bare words as strings."""
    try:
        return json.loads(text)
    except ValueError:
        return text


def parse_asm_var_options(options: Tuple[str, ...]) -> Dict[str, str]:
    """Parse repeated NAME=ASM options."""
    asm_vars = {}
    for option in options:
        name, sep, value = option.partition('=')
        if not sep or not name:
            raise click.BadParameter(f"expected NAME=ASM, got '{option}'", param_hint='--asm-var')
        asm_vars[name] = value
    return asm_vars


def values_to_json(values: Dict[str, Value]) -> Dict[str, Any]:
    return {name: value.to_json() for name, value in values.items()}


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option('--config-file', '-c',
              help='Path to configuration file')
@click.option('--profile', '-p',
              help='Configuration profile (default, scripting, debug)')
@click.option('--output-format', '-o',
              type=click.Choice(OUTPUT_FORMATS),
              default=None,
              help='Output format (defaults to output.format)')
@click.option('--verbose', '-v',
              count=True,
              help='Increase verbosity (-v for INFO, -vv for DEBUG)')
@click.version_option(__version__, prog_name='scriptabi')
@pass_context
@handle_cli_error
def cli(ctx: CLIContext, config_file: Optional[str], profile: Optional[str],
        output_format: Optional[str], verbose: int):
    """
    Contract Script ABI command line interface.

    Examples:
        scriptabi artifact inspect P2PKH.json
        scriptabi render P2PKH.json '"2a7c..."'
        scriptabi match P2PKH.json '0 2a7c... OP_NOP ...'
        scriptabi num encode -- -129
    """
    ctx.config_file = config_file
    ctx.profile = profile
    ctx.output_format = output_format
    ctx.verbose = verbose

    ctx.load_config()
    ctx.setup_logging()
    ctx.logger.debug(f"CLI initialized from {', '.join(ctx.config.get_sources())}")


# Artifacts

@cli.group()
def artifact():
    """Contract artifact commands."""


@artifact.command('inspect')
@click.argument('artifact_path')
@pass_context
@handle_cli_error
def artifact_inspect(ctx: CLIContext, artifact_path: str):
    """Show constructor, functions, state and template of an artifact."""
    definition = ctx.load_definition(artifact_path)
    ctx.output(definition.describe())


# Scripts

@cli.command()
@click.argument('artifact_path')
@click.argument('args', nargs=-1)
@click.option('--asm-var', 'asm_vars', multiple=True,
              help='ASM variable binding NAME=ASM (repeatable)')
@click.option('--data', 'data_part', default=None,
              help='Data part, in the script format')
@click.option('--state', 'state_json', default=None,
              help='State properties as a JSON object')
@click.option('--script-format', '-f', type=click.Choice(SCRIPT_FORMATS), default=None,
              help='Script format (defaults to script.format)')
@pass_context
@handle_cli_error
def render(ctx: CLIContext, artifact_path: str, args: Tuple[str, ...], asm_vars: Tuple[str, ...],
           data_part: Optional[str], state_json: Optional[str], script_format: Optional[str]):
    """
    Render a locking script from constructor arguments.

    Each argument is a JSON value: numbers for int, true/false for bool, hex
    strings for bytes types, objects for structs and lists for arrays.
    """
    if data_part is not None and state_json is not None:
        raise click.UsageError("--data and --state are mutually exclusive")

    definition = ctx.load_definition(artifact_path)
    instance = definition.new(
        *[parse_json_value(arg) for arg in args],
        asm_vars=parse_asm_var_options(asm_vars),
    )

    if state_json is not None:
        instance.set_state(json.loads(state_json))
    elif data_part is not None:
        instance.set_data_part(ctx.parse_script(data_part, script_format))

    ctx.output({
        'contract': definition.name,
        'locking_script': ctx.format_script(instance.locking_script(), script_format),
        'code_part': ctx.format_script(instance.code_part(), script_format),
        'data_part': ctx.format_script(instance.data_part(), script_format),
    })


@cli.command()
@click.argument('artifact_path')
@click.argument('script')
@click.option('--script-format', '-f', type=click.Choice(SCRIPT_FORMATS), default=None,
              help='Script format (defaults to script.format)')
@pass_context
@handle_cli_error
def match(ctx: CLIContext, artifact_path: str, script: str, script_format: Optional[str]):
    """Recover constructor arguments from a locking script."""
    definition = ctx.load_definition(artifact_path)
    instance = definition.from_script(ctx.parse_script(script, script_format))

    result = {
        'contract': definition.name,
        'arguments': values_to_json(instance.ctor_arg_map()),
        'asm_variables': instance.asm_vars(),
        'data_part': ctx.format_script(instance.data_part(), script_format),
    }
    if definition.state_type is not None and instance.data_part() is not None:
        result['state'] = instance.state().to_json()
    ctx.output(result)


@cli.command()
@click.argument('artifact_path')
@click.argument('script')
@click.option('--set', 'new_state', default=None,
              help='New state properties as a JSON object')
@click.option('--script-format', '-f', type=click.Choice(SCRIPT_FORMATS), default=None,
              help='Script format (defaults to script.format)')
@pass_context
@handle_cli_error
def state(ctx: CLIContext, artifact_path: str, script: str, new_state: Optional[str],
          script_format: Optional[str]):
    """
    Decode the state of a stateful contract's locking script.

    With --set, print the locking script carrying the new state instead.
    """
    definition = ctx.load_definition(artifact_path)
    instance = definition.from_script(ctx.parse_script(script, script_format))

    if new_state is not None:
        ctx.output({
            'contract': definition.name,
            'locking_script': ctx.format_script(
                instance.new_state_script(json.loads(new_state)), script_format
            ),
        })
        return

    current = instance.state()
    ctx.output({
        'contract': definition.name,
        'state': None if current is None else current.to_json(),
    })


# Script numbers

@cli.group()
def num():
    """Script number encoding."""


@num.command('encode')
@click.argument('value', type=int)
@pass_context
@handle_cli_error
def num_encode(ctx: CLIContext, value: int):
    """Encode an integer as minimal script number bytes."""
    data = encode_script_num(value)
    ctx.output({
        'value': value,
        'hex': data.hex(),
        'push': ScriptChunk.push(data).serialize().hex(),
    })


@num.command('decode')
@click.argument('hex_string')
@pass_context
@handle_cli_error
def num_decode(ctx: CLIContext, hex_string: str):
    """Decode script number bytes given as hex."""
    ctx.output({'hex': hex_string, 'value': decode_script_num(bytes.fromhex(hex_string))})


# Configuration

@cli.group()
def config():
    """Configuration management commands."""


@config.command('show')
@click.option('--key', '-k', default=None, help='Dot-separated key to show')
@pass_context
@handle_cli_error
def config_show(ctx: CLIContext, key: Optional[str]):
    """Show the effective configuration and where it came from."""
    if key is not None:
        ctx.output({key: ctx.config.get(key)})
        return
    ctx.output({'sources': ctx.config.get_sources(), 'config': ctx.config.load()})


@config.command('validate')
@pass_context
@handle_cli_error
def config_validate(ctx: CLIContext):
    """Validate the effective configuration."""
    errors: List[str] = ctx.config.validate()
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)
    click.echo("Configuration is valid")


def main():
    cli()


if __name__ == '__main__':
    main()
