"""
Shared pytest fixtures for poremodel tests.
"""
import pytest
import numpy as np
import h5py

from poremodel.core.alphabet import get_alphabet


def make_states(n):
    """Deterministic, well-formed base table with n rows."""
    i = np.arange(n, dtype=np.float64)
    return np.column_stack([
        60.0 + 1.25 * i,      # level_mean
        1.5 + 0.01 * i,       # level_stdv
        1.0 + 0.02 * i,       # sd_mean
        0.3 + 0.005 * i,      # sd_stdv
    ])


def format_rows(kmers, states):
    return [kmer + '\t' + '\t'.join(repr(float(v)) for v in row)
            for kmer, row in zip(kmers, states)]


def write_model_text(path, rows, name='r9_template_test', shift_offset=None):
    """Write a text model with the given data rows (strings)."""
    lines = [f"#model_name\t{name}"]
    if shift_offset is not None:
        lines.append(f"#shift_offset\t{shift_offset}")
    lines.append("kmer\tlevel_mean\tlevel_stdv\tsd_mean\tsd_stdv")
    lines.extend(rows)
    path.write_text('\n'.join(lines) + '\n')
    return str(path)


def write_fast5(path, kmers, states, calibration, model_file,
                strands=('template',), group='Basecall_1D_000'):
    """Create a fast5-like HDF5 file carrying a basecaller model per strand."""
    k = len(kmers[0])
    dtype = np.dtype([
        ('kmer', f'S{k}'),
        ('level_mean', 'f8'),
        ('level_stdv', 'f8'),
        ('sd_mean', 'f8'),
        ('sd_stdv', 'f8'),
        ('weight', 'f8'),
    ])
    table = np.zeros(len(kmers), dtype=dtype)
    table['kmer'] = [km.encode('ascii') for km in kmers]
    for j, field in enumerate(('level_mean', 'level_stdv', 'sd_mean', 'sd_stdv')):
        table[field] = states[:, j]
    table['weight'] = 1.0

    with h5py.File(path, 'w') as f:
        for strand in strands:
            ds = f.create_dataset(f'Analyses/{group}/BaseCalled_{strand}/Model', data=table)
            for key, value in calibration.items():
                ds.attrs[key] = value
            summary = f.require_group(f'Analyses/{group}/Summary/basecall_1d_{strand}')
            summary.attrs['model_file'] = model_file
    return str(path)


@pytest.fixture
def dna():
    return get_alphabet('dna')


@pytest.fixture
def dimer_kmers(dna):
    return list(dna.iter_kmers(2))


@pytest.fixture
def dimer_states():
    return make_states(16)


@pytest.fixture
def dimer_model_path(tmp_path, dimer_kmers, dimer_states):
    """Complete 2-mer text model (16 rows)."""
    return write_model_text(tmp_path / "dimer.model", format_rows(dimer_kmers, dimer_states),
                            shift_offset=0.5)


@pytest.fixture
def calibration_attrs():
    return {
        'scale': 1.05,
        'shift': 2.5,
        'drift': 0.001,
        'var': 1.2,
        'scale_sd': 0.9,
        'var_sd': 1.1,
    }


@pytest.fixture
def dimer_fast5_path(tmp_path, dimer_kmers, dimer_states, calibration_attrs):
    """fast5 file with template and complement 2-mer models."""
    return write_fast5(tmp_path / "read.fast5", dimer_kmers, dimer_states, calibration_attrs,
                       model_file='/opt/chimaera/model/r9/template_median68pA.model',
                       strands=('template', 'complement'))
