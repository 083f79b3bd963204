"""Core model representation, alphabets, and model I/O."""

from poremodel.core.alphabet import Alphabet, DNAAlphabet, MethylCytosineAlphabet, get_alphabet
from poremodel.core.model import (
    PoreModel,
    KmerState,
    ScaledKmerState,
    GaussianParameters,
    CalibrationCoefficients,
    BakeReport,
)
from poremodel.core.model_io import (
    load_model,
    read_model,
    save_model,
    load_model_from_fast5,
    load_models_from_fast5,
    model_name_from_path,
)
