"""
poremodel - Nanopore k-mer emission models: loading from text and fast5 files,
per-read calibration (baking), and serialization.
"""

__version__ = "0.3.0"

from poremodel.config import ModelConfig, default_config
from poremodel.core.alphabet import DNAAlphabet, MethylCytosineAlphabet, get_alphabet
from poremodel.core.errors import (
    ModelValidationError,
    NumericAnomalyError,
    NumericAnomalyWarning,
    Fast5FormatError,
)
from poremodel.core.model import (
    PoreModel,
    KmerState,
    ScaledKmerState,
    CalibrationCoefficients,
)
from poremodel.core.model_io import (
    load_model,
    save_model,
    load_model_from_fast5,
    load_models_from_fast5,
)
