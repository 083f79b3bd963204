"""
Configuration for pore model loading and baking.

A ModelConfig is built once (usually from CLI arguments) and passed to the
loaders explicitly; nothing here is read from module-level state.
"""

from dataclasses import dataclass


# Installation prefix recorded in fast5 model paths by the ONT basecaller
DEFAULT_MODEL_PATH_PREFIX = '/opt/chimaera/model/'
DEFAULT_BASECALL_GROUP = 'Basecall_1D_000'


@dataclass(frozen=True)
class ModelConfig:
    """Settings shared by the text and fast5 model loaders."""

    # Alphabet used to rank k-mers ('dna' or 'methyl-cytosine')
    alphabet: str = 'dna'

    # Prefix of header lines in text model files
    comment_marker: str = '#'

    # Stripped from fast5 model paths before they are turned into names
    model_path_prefix: str = DEFAULT_MODEL_PATH_PREFIX

    # Analyses/<group> holding the basecaller model in fast5 files
    basecall_group: str = DEFAULT_BASECALL_GROUP

    # Raise instead of warn when baking produces non-finite values
    strict_numeric: bool = False

    def __post_init__(self):
        from poremodel.core.alphabet import available_alphabets

        if self.alphabet not in available_alphabets():
            raise ValueError(
                f"Unknown alphabet '{self.alphabet}'. "
                f"Choose from: {', '.join(available_alphabets())}"
            )
        if not self.comment_marker or self.comment_marker.isspace():
            raise ValueError("comment_marker must be a non-blank string")
        if not self.basecall_group:
            raise ValueError("basecall_group must not be empty")


def default_config() -> ModelConfig:
    """Config with the standard ONT R9 settings."""
    return ModelConfig()
