"""
Pore model representation

A PoreModel maps every k-mer of an alphabet to the expected nanopore signal
for that k-mer:
- level_mean, level_stdv: Gaussian parameters of the current level
- sd_mean, sd_stdv: parameters of the within-event standard deviation,
  modelled as an inverse Gaussian with shape sd_lambda = sd_mean^3 / sd_stdv^2

Baking applies a read's calibration coefficients to the base table and caches
the logs used by the emission density evaluation:

    level_mean' = level_mean * scale + shift
    level_stdv' = level_stdv * var
    sd_mean'    = sd_mean * scale_sd
    sd_lambda'  = sd_lambda * var_sd
    sd_stdv'    = sqrt(sd_mean'^3 / sd_lambda')

Model I/O (text files, fast5 extraction) lives in poremodel.core.model_io.
"""

import logging
import warnings
from dataclasses import dataclass, replace as dataclass_replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from poremodel.core.alphabet import Alphabet, get_alphabet
from poremodel.core.errors import (
    ModelValidationError,
    NumericAnomalyError,
    NumericAnomalyWarning,
)

logger = logging.getLogger(__name__)


STATE_FIELDS = ('level_mean', 'level_stdv', 'sd_mean', 'sd_stdv')
SCALED_FIELDS = ('level_mean', 'level_stdv', 'level_log_stdv',
                 'sd_mean', 'sd_stdv', 'sd_lambda', 'sd_log_lambda')


# =============================================================================
# Per-k-mer views
# =============================================================================

@dataclass(frozen=True)
class KmerState:
    """Base (unscaled) parameters for one k-mer."""
    level_mean: float
    level_stdv: float
    sd_mean: float
    sd_stdv: float

    @property
    def sd_lambda(self) -> float:
        return float(compute_sd_lambda(np.float64(self.sd_mean), np.float64(self.sd_stdv)))


@dataclass(frozen=True)
class ScaledKmerState:
    """Read-calibrated parameters for one k-mer, with cached logs."""
    level_mean: float
    level_stdv: float
    level_log_stdv: float
    sd_mean: float
    sd_stdv: float
    sd_lambda: float
    sd_log_lambda: float


@dataclass(frozen=True)
class GaussianParameters:
    """Scaled level distribution only."""
    mean: float
    stdv: float
    log_stdv: float


@dataclass(frozen=True)
class CalibrationCoefficients:
    """
    Per-read affine calibration constants.

    The defaults are the identity transform. drift is carried along for
    consumers that correct event levels over time; baking does not use it.
    """
    scale: float = 1.0
    shift: float = 0.0
    var: float = 1.0
    drift: float = 0.0
    scale_sd: float = 1.0
    var_sd: float = 1.0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> 'CalibrationCoefficients':
        """Build from a mapping such as HDF5 attributes; unknown keys are ignored."""
        kwargs = {}
        for name in ('scale', 'shift', 'var', 'drift', 'scale_sd', 'var_sd'):
            if name in values:
                kwargs[name] = float(values[name])
        return cls(**kwargs)

    def with_shift_offset(self, offset: float) -> 'CalibrationCoefficients':
        return dataclass_replace(self, shift=self.shift + offset)

    def to_dict(self) -> Dict[str, float]:
        return {
            'scale': self.scale,
            'shift': self.shift,
            'var': self.var,
            'drift': self.drift,
            'scale_sd': self.scale_sd,
            'var_sd': self.var_sd,
        }


IDENTITY_CALIBRATION = CalibrationCoefficients()


@dataclass(frozen=True)
class BakeReport:
    """Outcome of PoreModel.bake()."""
    n_states: int
    anomalous_ranks: Tuple[int, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.anomalous_ranks


# =============================================================================
# Vectorized transforms
# =============================================================================

def compute_sd_lambda(sd_mean: np.ndarray, sd_stdv: np.ndarray) -> np.ndarray:
    """Method-of-moments inverse Gaussian shape: sd_mean^3 / sd_stdv^2."""
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.power(sd_mean, 3) / np.power(sd_stdv, 2)


def scale_states(states: np.ndarray, calibration: CalibrationCoefficients) -> np.ndarray:
    """
    Apply calibration to a (n, 4) base table.

    Args:
        states: Columns in STATE_FIELDS order
        calibration: Read calibration coefficients

    Returns:
        (n, 7) array with columns in SCALED_FIELDS order. Invalid inputs give
        NaN/inf rather than raising.
    """
    c = calibration
    sd_lambda = compute_sd_lambda(states[:, 2], states[:, 3])

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        level_mean = states[:, 0] * c.scale + c.shift
        level_stdv = states[:, 1] * c.var
        sd_mean = states[:, 2] * c.scale_sd
        sd_lambda = sd_lambda * c.var_sd
        sd_stdv = np.sqrt(np.power(sd_mean, 3) / sd_lambda)

        level_log_stdv = np.log(level_stdv)
        sd_log_lambda = np.log(sd_lambda)

    return np.column_stack([level_mean, level_stdv, level_log_stdv,
                            sd_mean, sd_stdv, sd_lambda, sd_log_lambda])


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


# =============================================================================
# PoreModel
# =============================================================================

class PoreModel:
    """
    Emission table for every k-mer of an alphabet, plus its calibration.

    The base table is stored as a read-only (A^k, 4) float64 array indexed by
    k-mer rank. When baked, a parallel (A^k, 7) scaled table is kept in sync:
    any change to the base states or the calibration re-bakes immediately.
    """

    def __init__(self, states: np.ndarray, k: int,
                 alphabet: Optional[Alphabet] = None,
                 name: str = '',
                 shift_offset: float = 0.0,
                 calibration: Optional[CalibrationCoefficients] = None,
                 strict_numeric: bool = False):
        self._alphabet = alphabet if alphabet is not None else get_alphabet('dna')
        self._k = int(k)
        self._states = self._check_states(states, self._k)
        self.name = name
        self._shift_offset = float(shift_offset)
        self._calibration = calibration if calibration is not None else IDENTITY_CALIBRATION
        self.strict_numeric = strict_numeric

        self._scaled: Optional[np.ndarray] = None
        self._anomalous_ranks: Tuple[int, ...] = ()

    @classmethod
    def from_states(cls, states: Sequence[KmerState], k: int, **kwargs) -> 'PoreModel':
        """Build from KmerState objects given in rank order."""
        table = np.array([[s.level_mean, s.level_stdv, s.sd_mean, s.sd_stdv] for s in states],
                         dtype=np.float64).reshape(-1, len(STATE_FIELDS))
        return cls(table, k, **kwargs)

    def _check_states(self, states, k: int) -> np.ndarray:
        table = np.array(states, dtype=np.float64)
        expected = (self._alphabet.num_strings(k), len(STATE_FIELDS))
        if table.shape != expected:
            raise ModelValidationError(
                f"State table has shape {table.shape}, expected {expected} "
                f"for k={k} over the {self._alphabet.name} alphabet"
            )
        return _readonly(table)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def k(self) -> int:
        return self._k

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    @property
    def num_states(self) -> int:
        return self._states.shape[0]

    @property
    def shift_offset(self) -> float:
        return self._shift_offset

    @property
    def calibration(self) -> CalibrationCoefficients:
        return self._calibration

    @property
    def baked(self) -> bool:
        return self._scaled is not None

    @property
    def states(self) -> np.ndarray:
        """Read-only (A^k, 4) base table."""
        return self._states

    @property
    def scaled_states(self) -> Optional[np.ndarray]:
        """Read-only (A^k, 7) scaled table, or None if not baked."""
        return self._scaled

    @property
    def level_mean(self) -> np.ndarray:
        return self._states[:, 0]

    @property
    def level_stdv(self) -> np.ndarray:
        return self._states[:, 1]

    @property
    def sd_mean(self) -> np.ndarray:
        return self._states[:, 2]

    @property
    def sd_stdv(self) -> np.ndarray:
        return self._states[:, 3]

    @property
    def sd_lambda(self) -> np.ndarray:
        return compute_sd_lambda(self.sd_mean, self.sd_stdv)

    @property
    def anomalous_ranks(self) -> Tuple[int, ...]:
        """Ranks whose scaled parameters were non-finite at the last bake."""
        return self._anomalous_ranks

    @property
    def has_numeric_anomaly(self) -> bool:
        return bool(self._anomalous_ranks)

    def __len__(self) -> int:
        return self.num_states

    def __repr__(self) -> str:
        return (f"PoreModel(name={self.name!r}, k={self.k}, states={self.num_states}, "
                f"baked={self.baked})")

    # -------------------------------------------------------------------------
    # Baking
    # -------------------------------------------------------------------------

    def bake(self, strict: Optional[bool] = None) -> BakeReport:
        """
        Recompute the scaled table from the base table and calibration.

        Args:
            strict: Raise NumericAnomalyError on non-finite output instead of
                warning. Defaults to the model's strict_numeric setting.

        Returns:
            BakeReport listing ranks with non-finite scaled values

        Raises:
            NumericAnomalyError: in strict mode; the model is left un-baked
        """
        if strict is None:
            strict = self.strict_numeric

        scaled = scale_states(self._states, self._calibration)
        bad = tuple(int(r) for r in np.flatnonzero(~np.isfinite(scaled).all(axis=1)))

        if bad:
            kmers = ', '.join(self._alphabet.rank_to_kmer(r, self._k) for r in bad[:5])
            more = f" (+{len(bad) - 5} more)" if len(bad) > 5 else ''
            message = (f"Model '{self.name}': non-finite scaled parameters for "
                       f"{len(bad)} k-mer(s): {kmers}{more}; calibration={self._calibration}")
            if strict:
                self._scaled = None
                self._anomalous_ranks = bad
                raise NumericAnomalyError(message, bad)
            warnings.warn(message, NumericAnomalyWarning, stacklevel=2)

        self._scaled = _readonly(scaled)
        self._anomalous_ranks = bad
        logger.debug("Baked %d states for model %s", self.num_states, self.name)
        return BakeReport(n_states=self.num_states, anomalous_ranks=bad)

    def set_calibration(self, calibration: CalibrationCoefficients) -> None:
        """Replace the calibration coefficients, re-baking if already baked.

        In strict mode a failing re-bake keeps the previous calibration.
        """
        self._swap(self._states, self._shift_offset, calibration)

    # -------------------------------------------------------------------------
    # Update
    # -------------------------------------------------------------------------

    def replace(self, states: np.ndarray, shift_offset: float = 0.0) -> None:
        """
        Swap in a new base table (e.g. a retrained model).

        shift_offset is recorded as this model's offset and added to the
        current shift coefficient. Re-bakes if the model was baked.

        Raises:
            ModelValidationError: if the table size does not match this model's k
            NumericAnomalyError: in strict mode; the previous table, offset and
                calibration are kept
        """
        new_states = self._check_states(states, self._k)
        self._swap(new_states, float(shift_offset),
                   self._calibration.with_shift_offset(float(shift_offset)))

    def _swap(self, states: np.ndarray, shift_offset: float,
              calibration: CalibrationCoefficients) -> None:
        """Install new base fields; restore the old ones if a strict re-bake fails."""
        saved = (self._states, self._shift_offset, self._calibration,
                 self._scaled, self._anomalous_ranks)
        self._states = states
        self._shift_offset = shift_offset
        self._calibration = calibration
        if self.baked:
            try:
                self.bake()
            except NumericAnomalyError:
                (self._states, self._shift_offset, self._calibration,
                 self._scaled, self._anomalous_ranks) = saved
                raise

    def update_states(self, other: 'PoreModel') -> None:
        """Replace this model's states with another model's, keeping calibration."""
        if other.k != self._k:
            raise ModelValidationError(
                f"Cannot update a {self._k}-mer model with a {other.k}-mer model "
                f"('{other.name}')"
            )
        if other.alphabet.symbols != self._alphabet.symbols:
            raise ModelValidationError(
                f"Alphabet mismatch: {self._alphabet.name} vs {other.alphabet.name}"
            )
        self._k = other.k
        self.replace(other.states, other.shift_offset)

    def copy(self) -> 'PoreModel':
        """Independent copy (e.g. one per read)."""
        model = PoreModel(self._states, self._k, alphabet=self._alphabet, name=self.name,
                          shift_offset=self._shift_offset, calibration=self._calibration,
                          strict_numeric=self.strict_numeric)
        if self.baked:
            model._scaled = self._scaled
            model._anomalous_ranks = self._anomalous_ranks
        return model

    # -------------------------------------------------------------------------
    # Per-k-mer access
    # -------------------------------------------------------------------------

    def rank(self, kmer: str) -> int:
        return self._alphabet.kmer_rank(kmer, self._k)

    def kmers(self) -> List[str]:
        """All k-mers in rank order."""
        return list(self._alphabet.iter_kmers(self._k))

    def get_state(self, rank: int) -> KmerState:
        return KmerState(*(float(v) for v in self._states[rank]))

    def get_state_for_kmer(self, kmer: str) -> KmerState:
        return self.get_state(self.rank(kmer))

    def get_scaled_state(self, rank: int) -> ScaledKmerState:
        """
        Emission parameters for a k-mer rank.

        Returns the baked values if the model is baked, otherwise the base
        values with their logs.
        """
        if self._scaled is not None:
            return ScaledKmerState(*(float(v) for v in self._scaled[rank]))

        s = self.get_state(rank)
        with np.errstate(divide='ignore', invalid='ignore'):
            return ScaledKmerState(
                level_mean=s.level_mean,
                level_stdv=s.level_stdv,
                level_log_stdv=float(np.log(s.level_stdv)),
                sd_mean=s.sd_mean,
                sd_stdv=s.sd_stdv,
                sd_lambda=s.sd_lambda,
                sd_log_lambda=float(np.log(s.sd_lambda)),
            )

    def get_scaled_parameters(self, rank: int) -> GaussianParameters:
        s = self.get_scaled_state(rank)
        return GaussianParameters(mean=s.level_mean, stdv=s.level_stdv, log_stdv=s.level_log_stdv)

    # -------------------------------------------------------------------------
    # Inspection / output
    # -------------------------------------------------------------------------

    def to_dataframe(self, scaled: bool = False) -> pd.DataFrame:
        """
        Table as a DataFrame indexed by k-mer.

        Args:
            scaled: Return the baked table (requires baked model)
        """
        if scaled:
            if self._scaled is None:
                raise ValueError(f"Model '{self.name}' has not been baked")
            df = pd.DataFrame(self._scaled, columns=list(SCALED_FIELDS))
        else:
            df = pd.DataFrame(self._states, columns=list(STATE_FIELDS))
            df['sd_lambda'] = self.sd_lambda
        df.index = pd.Index(self.kmers(), name='kmer')
        return df

    def summary(self) -> Dict[str, Any]:
        """Summary statistics of the base table."""
        return {
            'name': self.name,
            'k': self.k,
            'alphabet': self._alphabet.name,
            'n_states': self.num_states,
            'shift_offset': self.shift_offset,
            'baked': self.baked,
            'level_mean_min': float(self.level_mean.min()),
            'level_mean_max': float(self.level_mean.max()),
            'level_stdv_mean': float(self.level_stdv.mean()),
            'sd_mean_mean': float(self.sd_mean.mean()),
            'sd_stdv_mean': float(self.sd_stdv.mean()),
            'calibration': self._calibration.to_dict(),
            'n_anomalous': len(self._anomalous_ranks),
        }

    def write(self, filepath: str, model_name: Optional[str] = None) -> None:
        """Write the base table as a text model file."""
        from poremodel.core.model_io import save_model
        save_model(self, filepath, model_name=model_name)
