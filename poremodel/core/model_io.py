"""
poremodel I/O module

Handles loading and saving pore models:
- Text model files: header lines (#model_name, #shift_offset) followed by one
  tab-separated row per k-mer: kmer, level_mean, level_stdv, sd_mean, sd_stdv
- fast5 files: the basecaller's per-strand model and calibration, baked on load

Saving writes the text format in rank order, so load -> save -> load is exact.
"""

import logging
import math
import os
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from poremodel.config import ModelConfig, default_config
from poremodel.core.alphabet import Alphabet, get_alphabet
from poremodel.core.errors import ModelValidationError
from poremodel.core.fast5_reader import Fast5Reader
from poremodel.core.model import PoreModel, STATE_FIELDS

logger = logging.getLogger(__name__)


# =============================================================================
# Table assembly
# =============================================================================

class _StateTableBuilder:
    """
    Fills a rank-indexed state table, rejecting duplicate and missing k-mers.

    k is fixed by the first k-mer added.
    """

    def __init__(self, alphabet: Alphabet, source: str):
        self.alphabet = alphabet
        self.source = source
        self.k: Optional[int] = None
        self.table: Optional[np.ndarray] = None
        self.filled: Optional[np.ndarray] = None

    def add(self, kmer: str, values: Sequence[float], line_number: Optional[int] = None) -> None:
        if self.k is None:
            if not kmer:
                raise ModelValidationError("Empty k-mer", self.source, line_number)
            self.k = len(kmer)
            n = self.alphabet.num_strings(self.k)
            self.table = np.full((n, len(STATE_FIELDS)), np.nan)
            self.filled = np.zeros(n, dtype=bool)

        if len(kmer) != self.k:
            raise ModelValidationError(
                f"k-mer '{kmer}' has length {len(kmer)}, expected {self.k}",
                self.source, line_number)
        try:
            rank = self.alphabet.kmer_rank(kmer, self.k)
        except ValueError as e:
            raise ModelValidationError(str(e), self.source, line_number) from None

        if self.filled[rank]:
            raise ModelValidationError(f"Duplicate k-mer '{kmer}'", self.source, line_number)

        row = np.asarray(values, dtype=np.float64)
        if not np.isfinite(row).all():
            raise ModelValidationError(
                f"Non-finite parameters for k-mer '{kmer}': {list(values)}",
                self.source, line_number)

        self.table[rank] = row
        self.filled[rank] = True

    def finish(self) -> Tuple[np.ndarray, int]:
        if self.k is None:
            raise ModelValidationError("No k-mer entries found", self.source)

        missing = np.flatnonzero(~self.filled)
        if missing.size:
            examples = ', '.join(self.alphabet.rank_to_kmer(int(r), self.k) for r in missing[:5])
            more = f" (+{missing.size - 5} more)" if missing.size > 5 else ''
            raise ModelValidationError(
                f"Incomplete model: {int(self.filled.sum())} of {self.filled.size} "
                f"{self.k}-mers present; missing {examples}{more}",
                self.source)
        return self.table, self.k


# =============================================================================
# Text models
# =============================================================================

def load_model(filepath: str, config: Optional[ModelConfig] = None) -> PoreModel:
    """
    Load a pore model from a text file.

    Args:
        filepath: Path to the model file
        config: Loader settings (default_config() if None)

    Returns:
        Unbaked PoreModel with identity calibration

    Raises:
        ModelValidationError: if the table is malformed or incomplete
    """
    filepath = os.fspath(filepath)
    with open(filepath, 'r') as f:
        model = read_model(f, config=config, source=filepath)
    if not model.name:
        model.name = os.path.basename(filepath)
    logger.info("Loaded %d %d-mer states from %s", model.num_states, model.k, filepath)
    return model


def read_model(lines: Iterable[str], config: Optional[ModelConfig] = None,
               source: str = '<text>') -> PoreModel:
    """Parse a text model from an iterable of lines."""
    config = config or default_config()
    alphabet = get_alphabet(config.alphabet)
    marker = config.comment_marker

    builder = _StateTableBuilder(alphabet, source)
    name = ''
    shift_offset = 0.0

    for line_number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue

        if line.startswith(marker):
            fields = line[len(marker):].split()
            if len(fields) >= 2 and fields[0] == 'model_name':
                # names may contain spaces
                name = line[len(marker):].split(None, 1)[1].strip()
            elif len(fields) >= 2 and fields[0] == 'shift_offset':
                try:
                    shift_offset = float(fields[1])
                except ValueError:
                    raise ModelValidationError(
                        f"Invalid shift_offset '{fields[1]}'", source, line_number) from None
                if not math.isfinite(shift_offset):
                    raise ModelValidationError(
                        f"Non-finite shift_offset '{fields[1]}'", source, line_number)
                logger.info("Found shift offset of %.2f in %s", shift_offset, source)
            continue

        # column header
        if line.startswith('kmer'):
            continue

        fields = line.split()
        if len(fields) < 1 + len(STATE_FIELDS):
            raise ModelValidationError(
                f"Expected kmer plus {len(STATE_FIELDS)} values, got {len(fields)} fields",
                source, line_number)
        try:
            values = [float(v) for v in fields[1:1 + len(STATE_FIELDS)]]
        except ValueError:
            raise ModelValidationError(
                f"Non-numeric parameter in '{line}'", source, line_number) from None

        builder.add(fields[0], values, line_number)

    table, k = builder.finish()
    return PoreModel(table, k, alphabet=alphabet, name=name, shift_offset=shift_offset,
                     strict_numeric=config.strict_numeric)


def _format_float(x: float) -> str:
    return repr(float(x))


def save_model(model: PoreModel, filepath: str, model_name: Optional[str] = None,
               config: Optional[ModelConfig] = None) -> None:
    """
    Save the base (unscaled) table as a text model file.

    Rows are written in rank order, starting from the all-first-symbol k-mer
    and stepping with the alphabet's lexicographic successor.

    Args:
        model: PoreModel to save
        filepath: Output path
        model_name: Name written to the header (defaults to model.name)
        config: Supplies the comment marker

    Raises:
        ValueError: if the name is empty, multi-line, or has surrounding
            whitespace, since it could not be read back unchanged
    """
    config = config or default_config()
    marker = config.comment_marker
    name = model_name if model_name else model.name
    if not name or name.strip() != name or len(name.splitlines()) > 1:
        raise ValueError(
            f"Model name {name!r} cannot be written to a model header; "
            "use a non-empty, single-line name without leading or trailing whitespace"
        )
    alphabet = model.alphabet

    with open(filepath, 'w') as f:
        f.write(f"{marker}model_name\t{name}\n")
        f.write(f"{marker}shift_offset\t{_format_float(model.shift_offset)}\n")

        kmer = alphabet.base(0) * model.k
        for row in model.states:
            f.write(kmer + '\t' + '\t'.join(_format_float(v) for v in row) + '\n')
            kmer = alphabet.lexicographic_next(kmer)

    logger.info("Wrote %d states for model %s to %s", model.num_states, name, filepath)


# =============================================================================
# fast5 models
# =============================================================================

def model_name_from_path(path: str, prefix: str) -> str:
    """
    Flatten a basecaller model path into a name usable in filenames.

    Strips `prefix` if the path starts with it, then replaces '/' with '_'.
    """
    if prefix and path.startswith(prefix):
        path = path[len(prefix):]
    return path.replace('/', '_')


def load_model_from_fast5(source: Union[str, os.PathLike, Fast5Reader], strand: int = 0,
                          config: Optional[ModelConfig] = None) -> PoreModel:
    """
    Load and bake the basecaller model embedded in a fast5 file.

    Args:
        source: Path to a fast5 file, or an open Fast5Reader
        strand: 0 for template, 1 for complement
        config: Loader settings

    Returns:
        Baked PoreModel carrying the read's calibration, with shift_offset 0

    Raises:
        ModelValidationError: if the embedded table is malformed or incomplete
        Fast5FormatError: if the file lacks the model groups or attributes
    """
    config = config or default_config()
    if isinstance(source, Fast5Reader):
        return _model_from_reader(source, strand, config)

    with Fast5Reader(os.fspath(source), basecall_group=config.basecall_group) as reader:
        return _model_from_reader(reader, strand, config)


def load_models_from_fast5(filepath: str,
                           config: Optional[ModelConfig] = None) -> Dict[int, PoreModel]:
    """Load every strand model present in a fast5 file, keyed by strand."""
    config = config or default_config()
    with Fast5Reader(os.fspath(filepath), basecall_group=config.basecall_group) as reader:
        return {strand: _model_from_reader(reader, strand, config)
                for strand in reader.strands()}


def _model_from_reader(reader: Fast5Reader, strand: int, config: ModelConfig) -> PoreModel:
    alphabet = get_alphabet(config.alphabet)
    source = f"{reader.filepath}[strand {strand}]"

    builder = _StateTableBuilder(alphabet, source)
    for i, (kmer, *values) in enumerate(reader.get_model(strand)):
        builder.add(kmer, values, i + 1)
    table, k = builder.finish()

    name = model_name_from_path(reader.get_model_file(strand), config.model_path_prefix)
    model = PoreModel(table, k, alphabet=alphabet, name=name,
                      shift_offset=0.0,
                      calibration=reader.get_calibration(strand),
                      strict_numeric=config.strict_numeric)
    model.bake()
    logger.debug("Loaded model %s (%d states) from %s", name, model.num_states, source)
    return model
