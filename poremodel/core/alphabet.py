"""
Nucleotide alphabets and k-mer ranking.

A k-mer's rank is its base-A positional value (first symbol most significant),
which is also its position in lexicographic enumeration of all A^k k-mers.
"""

from typing import Dict, Iterator, Tuple


class Alphabet:
    """
    Fixed, ordered symbol set with k-mer rank <-> string conversion.

    Symbols must be given in lexicographic order so that rank order and
    lexicographic order agree.
    """

    name = 'base'
    symbols: Tuple[str, ...] = ()

    def __init__(self):
        self._index: Dict[str, int] = {s: i for i, s in enumerate(self.symbols)}

    @property
    def size(self) -> int:
        return len(self.symbols)

    def base(self, i: int) -> str:
        return self.symbols[i]

    def num_strings(self, k: int) -> int:
        """Number of distinct k-mers (A^k)."""
        return self.size ** k

    def is_valid_kmer(self, kmer: str) -> bool:
        return all(c in self._index for c in kmer)

    def kmer_rank(self, kmer: str, k: int) -> int:
        """
        Rank of a k-mer in [0, A^k).

        Args:
            kmer: k-mer string (case-sensitive, must use this alphabet's symbols)
            k: Expected k-mer length

        Returns:
            Integer rank

        Raises:
            ValueError: if the length differs from k or a symbol is unknown
        """
        if len(kmer) != k:
            raise ValueError(f"Expected a {k}-mer, got '{kmer}' (length {len(kmer)})")
        rank = 0
        for c in kmer:
            try:
                rank = rank * self.size + self._index[c]
            except KeyError:
                raise ValueError(
                    f"Symbol '{c}' in '{kmer}' is not in the {self.name} alphabet"
                ) from None
        return rank

    def rank_to_kmer(self, rank: int, k: int) -> str:
        """Inverse of kmer_rank."""
        if not 0 <= rank < self.num_strings(k):
            raise ValueError(f"Rank {rank} out of range for k={k}")
        out = []
        for _ in range(k):
            rank, r = divmod(rank, self.size)
            out.append(self.symbols[r])
        return ''.join(reversed(out))

    def lexicographic_next(self, kmer: str) -> str:
        """
        Return the k-mer following `kmer` in lexicographic order.

        The last k-mer (all final symbols) wraps around to the first.
        """
        chars = list(kmer)
        i = len(chars) - 1
        while i >= 0:
            r = self._index[chars[i]] + 1
            if r < self.size:
                chars[i] = self.symbols[r]
                return ''.join(chars)
            chars[i] = self.symbols[0]
            i -= 1
        return ''.join(chars)

    def iter_kmers(self, k: int) -> Iterator[str]:
        """Yield all k-mers in rank order."""
        kmer = self.symbols[0] * k
        for _ in range(self.num_strings(k)):
            yield kmer
            kmer = self.lexicographic_next(kmer)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({''.join(self.symbols)!r})"


class DNAAlphabet(Alphabet):
    name = 'dna'
    symbols = ('A', 'C', 'G', 'T')


class MethylCytosineAlphabet(Alphabet):
    """DNA with 5-methylcytosine written as M."""
    name = 'methyl-cytosine'
    symbols = ('A', 'C', 'G', 'M', 'T')


_ALPHABETS = {
    DNAAlphabet.name: DNAAlphabet,
    MethylCytosineAlphabet.name: MethylCytosineAlphabet,
}
_cache: Dict[str, Alphabet] = {}


def available_alphabets() -> Tuple[str, ...]:
    return tuple(_ALPHABETS)


def get_alphabet(name: str = 'dna') -> Alphabet:
    """Get a (cached) alphabet instance by name."""
    if name not in _ALPHABETS:
        raise ValueError(
            f"Unknown alphabet '{name}'. Choose from: {', '.join(_ALPHABETS)}"
        )
    if name not in _cache:
        _cache[name] = _ALPHABETS[name]()
    return _cache[name]
