"""Shared argparse argument factories for poremodel CLI tools.

Each function adds a group of related arguments to an ArgumentParser.
Default values can be overridden per-subcommand where needed.
"""

import argparse

from poremodel.config import (
    DEFAULT_BASECALL_GROUP,
    DEFAULT_MODEL_PATH_PREFIX,
    ModelConfig,
)
from poremodel.core.alphabet import available_alphabets


def add_alphabet_args(parser: argparse.ArgumentParser,
                      default: str = 'dna') -> None:
    """Add --alphabet argument."""
    parser.add_argument(
        '--alphabet', '-a',
        choices=list(available_alphabets()),
        default=default,
        help=f"K-mer alphabet (default: {default})"
    )


def add_strand_args(parser: argparse.ArgumentParser,
                    default: int = 0) -> None:
    """Add fast5 strand selection (--strand, --basecall-group, --model-prefix)."""
    parser.add_argument(
        '--strand', '-s', type=int, choices=[0, 1], default=default,
        help=f"Strand: 0=template, 1=complement (default: {default})"
    )
    parser.add_argument(
        '--basecall-group', default=DEFAULT_BASECALL_GROUP,
        help=f"fast5 Analyses group holding the model (default: {DEFAULT_BASECALL_GROUP})"
    )
    parser.add_argument(
        '--model-prefix', default=DEFAULT_MODEL_PATH_PREFIX,
        help=f"Prefix stripped from recorded model paths (default: {DEFAULT_MODEL_PATH_PREFIX})"
    )


def add_strict_args(parser: argparse.ArgumentParser) -> None:
    """Add --strict flag."""
    parser.add_argument(
        '--strict', action='store_true',
        help="Fail on non-finite baked parameters instead of warning"
    )


def add_output_args(parser: argparse.ArgumentParser,
                    required: bool = True,
                    help_text: str = "Output model file") -> None:
    """Add -o/--output argument."""
    parser.add_argument(
        '-o', '--output', required=required,
        help=help_text
    )


def add_verbose_args(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag."""
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help="Verbose output"
    )


def add_version_args(parser: argparse.ArgumentParser) -> None:
    """Add --version flag."""
    from poremodel import __version__
    parser.add_argument(
        '--version', action='version',
        version=f'%(prog)s {__version__}'
    )


def config_from_args(args: argparse.Namespace) -> ModelConfig:
    """Build a ModelConfig from whichever of the arguments above were added."""
    kwargs = {}
    if getattr(args, 'alphabet', None):
        kwargs['alphabet'] = args.alphabet
    if getattr(args, 'basecall_group', None):
        kwargs['basecall_group'] = args.basecall_group
    if getattr(args, 'model_prefix', None) is not None:
        kwargs['model_path_prefix'] = args.model_prefix
    if getattr(args, 'strict', False):
        kwargs['strict_numeric'] = True
    return ModelConfig(**kwargs)
