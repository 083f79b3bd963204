"""
Minimal fast5 (HDF5) access for basecaller pore models.

Reads the per-strand model table, its calibration attributes, and the model
file path recorded by the basecaller:

    /Analyses/<group>/BaseCalled_<strand>/Model            (compound dataset)
        attrs: scale, shift, drift, var, scale_sd, var_sd
    /Analyses/<group>/Summary/basecall_1d_<strand>
        attrs: model_file
"""

from typing import List, Tuple

import h5py
import numpy as np

from poremodel.config import DEFAULT_BASECALL_GROUP
from poremodel.core.errors import Fast5FormatError
from poremodel.core.model import CalibrationCoefficients, STATE_FIELDS


STRAND_NAMES = ('template', 'complement')

ModelRow = Tuple[str, float, float, float, float]


def strand_name(strand: int) -> str:
    try:
        return STRAND_NAMES[strand]
    except (IndexError, TypeError):
        raise ValueError(f"Strand must be 0 (template) or 1 (complement), got {strand!r}") from None


def _decode(value) -> str:
    if isinstance(value, np.ndarray) and value.shape == ():
        value = value[()]
    if isinstance(value, (bytes, np.bytes_)):
        return value.decode('ascii')
    return str(value)


class Fast5Reader:
    """
    Read-only view of the basecaller model stored in a fast5 file.

    Usage:
        with Fast5Reader('read.fast5') as f5:
            rows = f5.get_model(0)
    """

    def __init__(self, filepath: str, basecall_group: str = DEFAULT_BASECALL_GROUP):
        self.filepath = str(filepath)
        self.basecall_group = basecall_group
        self._file = h5py.File(self.filepath, 'r')

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> 'Fast5Reader':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------------------------------------------------------------------------

    def _model_path(self, strand: int) -> str:
        return f"Analyses/{self.basecall_group}/BaseCalled_{strand_name(strand)}/Model"

    def _summary_path(self, strand: int) -> str:
        return f"Analyses/{self.basecall_group}/Summary/basecall_1d_{strand_name(strand)}"

    def _get(self, path: str):
        if self._file is None:
            raise ValueError(f"{self.filepath} is closed")
        try:
            return self._file[path]
        except KeyError:
            raise Fast5FormatError(f"{self.filepath}: missing '/{path}'") from None

    def has_model(self, strand: int) -> bool:
        return self._model_path(strand) in self._file

    def strands(self) -> List[int]:
        """Strands that carry an embedded model."""
        return [s for s in range(len(STRAND_NAMES)) if self.has_model(s)]

    def get_model(self, strand: int) -> List[ModelRow]:
        """
        Embedded model table as (kmer, level_mean, level_stdv, sd_mean, sd_stdv) rows.
        """
        data = self._get(self._model_path(strand))[()]
        names = data.dtype.names or ()
        missing = [f for f in ('kmer',) + STATE_FIELDS if f not in names]
        if missing:
            raise Fast5FormatError(
                f"{self.filepath}: model table for strand {strand} lacks fields {missing}"
            )

        rows = []
        for entry in data:
            rows.append((_decode(entry['kmer']),
                         float(entry['level_mean']), float(entry['level_stdv']),
                         float(entry['sd_mean']), float(entry['sd_stdv'])))
        return rows

    def get_calibration(self, strand: int) -> CalibrationCoefficients:
        attrs = self._get(self._model_path(strand)).attrs
        missing = [a for a in ('scale', 'shift', 'drift', 'var', 'scale_sd', 'var_sd')
                   if a not in attrs]
        if missing:
            raise Fast5FormatError(
                f"{self.filepath}: model for strand {strand} lacks calibration attributes {missing}"
            )
        return CalibrationCoefficients.from_mapping(attrs)

    def get_model_file(self, strand: int) -> str:
        attrs = self._get(self._summary_path(strand)).attrs
        if 'model_file' not in attrs:
            raise Fast5FormatError(
                f"{self.filepath}: no model_file recorded for strand {strand}"
            )
        return _decode(attrs['model_file'])
