#!/usr/bin/env python3
"""
poremodel utilities: inspect, extract, update.

Usage:
    poremodel-utils inspect r9_template.model
    poremodel-utils inspect --fast5 read.fast5 --strand 1
    poremodel-utils extract read.fast5 -o template.model
    poremodel-utils update read.fast5 trained.model -o read_trained.model
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from poremodel.cli.common import (
    add_alphabet_args,
    add_output_args,
    add_strand_args,
    add_strict_args,
    add_verbose_args,
    add_version_args,
    config_from_args,
)
from poremodel.core.errors import PoreModelError
from poremodel.core.model import PoreModel
from poremodel.core.model_io import load_model, load_model_from_fast5, save_model


# =============================================================================
# inspect subcommand
# =============================================================================

def _print_model(model: PoreModel, source: str, show_table: bool = False) -> None:
    summary = model.summary()
    print(f"Model: {source}")
    print(f"  Name: {model.name}")
    print(f"  Alphabet: {summary['alphabet']}")
    print(f"  k: {model.k}")
    print(f"  States: {model.num_states:,}")
    print(f"  Shift offset: {model.shift_offset}")
    print(f"  Baked: {model.baked}")
    print()

    print("Calibration:")
    for key, value in summary['calibration'].items():
        print(f"  {key:>9s}: {value:.6f}")
    print()

    print("Base parameters:")
    for field in ('level_mean', 'level_stdv', 'sd_mean', 'sd_stdv'):
        col = getattr(model, field)
        print(f"  {field:>10s}: min={col.min():.4f}  max={col.max():.4f}  "
              f"mean={col.mean():.4f}")

    if model.baked:
        print()
        scaled = model.scaled_states
        print("Scaled level_mean: "
              f"min={np.nanmin(scaled[:, 0]):.4f}  max={np.nanmax(scaled[:, 0]):.4f}")
        if model.has_numeric_anomaly:
            print(f"  Warning: {len(model.anomalous_ranks)} k-mers have non-finite "
                  f"scaled parameters")

    if show_table:
        print()
        print("Full table:")
        print(model.to_dataframe(scaled=model.baked).to_string())


def cmd_inspect(args):
    """Print a summary of a text or fast5 model."""
    config = config_from_args(args)

    if args.fast5:
        source = args.fast5
        model = load_model_from_fast5(source, strand=args.strand, config=config)
    elif args.model:
        source = args.model
        model = load_model(source, config=config)
    else:
        print("Error: Provide a model file or --fast5", file=sys.stderr)
        sys.exit(1)

    _print_model(model, source, show_table=args.table)


# =============================================================================
# extract subcommand
# =============================================================================

def cmd_extract(args):
    """Write the model embedded in a fast5 file as a text model."""
    config = config_from_args(args)
    input_path = Path(args.fast5)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    print(f"Loading strand {args.strand} model from {input_path}...")
    model = load_model_from_fast5(input_path, strand=args.strand, config=config)
    print(f"  Name: {model.name}")
    print(f"  k={model.k}, {model.num_states:,} states")

    save_model(model, args.output, model_name=args.name, config=config)
    print(f"Saved model to: {args.output}")


# =============================================================================
# update subcommand
# =============================================================================

def cmd_update(args):
    """Replace a read's model states with a trained model and re-bake."""
    config = config_from_args(args)

    print(f"Loading read model from {args.fast5} (strand {args.strand})...")
    read_model = load_model_from_fast5(args.fast5, strand=args.strand, config=config)
    print(f"  shift={read_model.calibration.shift:.4f}")

    print(f"Loading trained model from {args.model}...")
    trained = load_model(args.model, config=config)
    print(f"  Name: {trained.name}, shift offset: {trained.shift_offset}")

    read_model.update_states(trained)
    print(f"  Updated shift={read_model.calibration.shift:.4f}")
    if read_model.has_numeric_anomaly:
        print(f"  Warning: {len(read_model.anomalous_ranks)} k-mers have non-finite "
              f"scaled parameters")

    name = args.name or trained.name
    save_model(read_model, args.output, model_name=name, config=config)
    print(f"Saved model to: {args.output}")


# =============================================================================
# main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='poremodel-utils',
        description="Pore model utilities: inspect, extract, update",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_version_args(parser)
    subparsers = parser.add_subparsers(dest='command')

    p_inspect = subparsers.add_parser(
        'inspect', help="Print model summary",
        description="Print a summary of a text model or a fast5-embedded model."
    )
    p_inspect.add_argument('model', nargs='?', help="Text model file")
    p_inspect.add_argument('--fast5', help="Read the model embedded in this fast5 file")
    p_inspect.add_argument('--table', action='store_true', help="Print the full table")
    add_alphabet_args(p_inspect)
    add_strand_args(p_inspect)
    add_strict_args(p_inspect)
    add_verbose_args(p_inspect)
    p_inspect.set_defaults(func=cmd_inspect)

    p_extract = subparsers.add_parser(
        'extract', help="Extract a fast5 model to a text file",
    )
    p_extract.add_argument('fast5', help="Input fast5 file")
    p_extract.add_argument('--name', default=None, help="Model name to write (default: from fast5)")
    add_output_args(p_extract)
    add_alphabet_args(p_extract)
    add_strand_args(p_extract)
    add_strict_args(p_extract)
    add_verbose_args(p_extract)
    p_extract.set_defaults(func=cmd_extract)

    p_update = subparsers.add_parser(
        'update', help="Apply a trained model to a read's calibration",
    )
    p_update.add_argument('fast5', help="Input fast5 file (calibration source)")
    p_update.add_argument('model', help="Trained text model")
    p_update.add_argument('--name', default=None, help="Model name to write (default: trained model's)")
    add_output_args(p_update)
    add_alphabet_args(p_update)
    add_strand_args(p_update)
    add_strict_args(p_update)
    add_verbose_args(p_update)
    p_update.set_defaults(func=cmd_update)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, 'func', None):
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        args.func(args)
    except (PoreModelError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
