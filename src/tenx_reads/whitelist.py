"""
Cell barcode whitelist.

Holds the set of valid 10x cell barcodes. The whitelist is loaded once per
run and is read-only afterwards, so it can be shared between workers.
"""

import gzip
import logging
from os import PathLike
from pathlib import Path
from typing import IO, Iterable, Iterator, Tuple, Union

from .constants import VALID_BASES

logger = logging.getLogger(__name__)


class Whitelist:
    """
    Immutable set of valid cell barcodes.

    Parameters
    ----------
    barcodes : iterable of str
        Barcode strings. Entries are stripped and uppercased; duplicates
        are coalesced. Entries with characters outside ACGT are skipped.

    Examples
    --------
    >>> wl = Whitelist(["AAAACCCCGGGGTTTT", "aaaaccccggggttta"])
    >>> "AAAACCCCGGGGTTTA" in wl
    True
    >>> len(wl)
    2
    """

    __slots__ = ("_barcodes", "_sorted")

    def __init__(self, barcodes: Iterable[str] = ()):
        valid = set()
        n_invalid = 0
        for barcode in barcodes:
            barcode = barcode.strip().upper()
            if not barcode:
                continue
            if not set(barcode) <= VALID_BASES:
                n_invalid += 1
                logger.debug(f"Skipping invalid whitelist entry '{barcode}'")
                continue
            valid.add(barcode)

        if n_invalid:
            logger.warning(f"Skipped {n_invalid} whitelist entries with non-ACGT bases")

        self._barcodes = frozenset(valid)
        self._sorted: Tuple[str, ...] = tuple(sorted(valid))

    @classmethod
    def load(cls, source: Union[PathLike, str, IO[str]]) -> "Whitelist":
        """
        Load a whitelist with one barcode per line.

        Blank lines and lines starting with ``#`` are ignored. Paths ending
        in ``.gz`` are read with gzip.

        Parameters
        ----------
        source : PathLike, str or text handle
            Whitelist file, or an already open text stream.

        Returns
        -------
        Whitelist

        Raises
        ------
        OSError
            If the file cannot be opened.
        """
        if hasattr(source, "read"):
            whitelist = cls(_barcode_lines(source))
        else:
            path = Path(source)
            if path.suffix == ".gz":
                handle = gzip.open(path, "rt")
            else:
                handle = open(path, "r")
            with handle:
                whitelist = cls(_barcode_lines(handle))

        logger.info(f"Loaded {len(whitelist):,} cell barcodes")
        return whitelist

    def contains(self, barcode: str) -> bool:
        """Exact membership test."""
        return barcode in self._barcodes

    def __contains__(self, barcode: object) -> bool:
        return barcode in self._barcodes

    def __len__(self) -> int:
        return len(self._barcodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sorted)

    def __repr__(self) -> str:
        return f"Whitelist(n_barcodes={len(self)})"

    @property
    def barcodes(self) -> Tuple[str, ...]:
        """All barcodes in sorted order."""
        return self._sorted


def _barcode_lines(handle: IO[str]) -> Iterator[str]:
    for line in handle:
        if line.startswith("#") or not line.strip():
            continue
        yield line
