"""
Sequencing read classification and cell barcode correction.

Classifies 10x Genomics reads by library layout, slices barcode, UMI,
switch oligo and insert at fixed offsets, and corrects cell barcodes with
a single ambiguous base against the whitelist.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from rapidfuzz.distance import Hamming
from rapidfuzz.process import extract

from .constants import (
    BARCODE_SLICE,
    GEX_R1_MIN_LEN,
    GEX_R2_MIN_LEN,
    GEX_UMI_SLICE,
    VALID_BASES,
    VDJ_INSERT_SLICE,
    VDJ_MIN_LEN,
    VDJ_SWITCH_SLICE,
    VDJ_UMI_SLICE,
)
from .fastq import FASTQParseError, RawRead
from .whitelist import Whitelist

logger = logging.getLogger(__name__)


class ClassificationError(FASTQParseError):
    """Raised when a read matches no known library layout."""
    pass


class LibraryType(str, Enum):
    """Library layout and read role of a 10x read."""

    VDJ_R1 = "vdj_r1"
    VDJ_R2 = "vdj_r2"
    GEX_R1 = "gex5_r1"
    GEX_R2 = "gex5_r2"


class CorrectionVerdict(NamedTuple):
    """
    Outcome of a barcode lookup.

    ``match_count`` is the number of whitelist entries found: 0 for none,
    1 for a unique hit (``barcode`` is the whitelist entry), 2 or more for
    an ambiguous correction. For anything but a unique hit ``barcode`` is
    the observed string.
    """

    match_count: int
    barcode: str


def correct_barcode(observed: str, whitelist: Whitelist) -> CorrectionVerdict:
    """
    Correct a cell barcode containing at most one non-ACGT base.

    Each non-ACGT character is a wildcard matching any base; every other
    position must match exactly. Barcodes with more than one non-ACGT
    character are not searched.

    Parameters
    ----------
    observed : str
        Barcode sliced from a read.
    whitelist : Whitelist
        Valid barcodes.

    Returns
    -------
    CorrectionVerdict
        ``(1, entry)`` for a unique match, otherwise ``(n_matches, observed)``.

    Notes
    -----
    The whitelist is scanned linearly, O(whitelist size x barcode length)
    per call. Whitelist entries are ACGT-only, so a wildcard position always
    counts as one mismatch and an entry matches exactly when its Hamming
    distance equals the number of wildcards.

    Examples
    --------
    >>> wl = Whitelist(["AAAACCCCGGGGTTTT"])
    >>> correct_barcode("AAAACCCCGGGGTTTN", wl)
    CorrectionVerdict(match_count=1, barcode='AAAACCCCGGGGTTTT')
    >>> correct_barcode("AAAACCCCGGGGTTNN", wl)
    CorrectionVerdict(match_count=0, barcode='AAAACCCCGGGGTTNN')
    """
    n_wildcards = sum(1 for base in observed if base not in VALID_BASES)

    if n_wildcards > 1:
        return CorrectionVerdict(0, observed)

    results = extract(
        observed,
        whitelist.barcodes,
        scorer=Hamming.distance,
        score_cutoff=n_wildcards,
        limit=None,
    )
    matches = [choice for choice, _, _ in results if len(choice) == len(observed)]

    if len(matches) == 1:
        return CorrectionVerdict(1, matches[0])

    return CorrectionVerdict(len(matches), observed)


def annotate_barcode(barcode: str, whitelist: Whitelist) -> CorrectionVerdict:
    """
    Look up a barcode, correcting it only if it has non-ACGT bases.

    ACGT-only barcodes are checked by exact membership and returned
    unchanged; anything else goes through :func:`correct_barcode`.
    """
    if set(barcode) <= VALID_BASES:
        return CorrectionVerdict(int(barcode in whitelist), barcode)

    return correct_barcode(barcode, whitelist)


@dataclass(frozen=True)
class ReadRecord:
    """
    A classified read ready for storage.

    Read 2 records have no cell barcode, so ``cell_barcode``, ``cb_exist``,
    ``umi`` and ``switch`` are None. ``switch`` is also None for 5' gene
    expression Read 1.
    """

    seq_id: str
    seq_desc: str
    seq: str
    quality: str
    read_num: int
    sample_idx: str
    library: LibraryType
    insert: str
    cell_barcode: Optional[str] = None
    cb_exist: Optional[int] = None
    umi: Optional[str] = None
    switch: Optional[str] = None

    @property
    def corrected(self) -> bool:
        """True if the stored barcode was changed by correction."""
        return (
            self.cell_barcode is not None
            and self.cb_exist == 1
            and self.cell_barcode != self.seq[BARCODE_SLICE]
        )

    def to_document(self) -> Dict[str, Any]:
        """Render as a MongoDB document, leaving out fields the layout lacks."""
        doc: Dict[str, Any] = {
            "seq_id": self.seq_id,
            "seq_desc": self.seq_desc,
            "seq": self.seq,
            "read_num": self.read_num,
            "sample_idx": self.sample_idx,
            "quality": self.quality,
            "library": self.library.value,
            "insert": self.insert,
        }
        if self.cell_barcode is not None:
            doc["cell_barcode"] = self.cell_barcode
            doc["cb_exist"] = self.cb_exist
            doc["umi"] = self.umi
        if self.switch is not None:
            doc["switch"] = self.switch
        return doc


def classify_read(read: RawRead, whitelist: Whitelist) -> ReadRecord:
    """
    Classify a read by length and read number and extract its fields.

    Rules are tried in order, first match wins:

    ============================  ==================  =========================
    Condition                     Layout              Fields
    ============================  ==================  =========================
    len >= 150, Read 1            V(D)J, Read 1       CB 0:16, UMI 16:26,
                                                      switch 26:39, insert 39:
    len >= 150, Read 2            V(D)J, Read 2       insert = whole read
    len >= 98, Read 2             5' GEX, Read 2      insert = whole read
    len >= 26, Read 1             5' GEX, Read 1      CB 0:16, UMI 16:
    ============================  ==================  =========================

    Parameters
    ----------
    read : RawRead
        Parsed FASTQ record.
    whitelist : Whitelist
        Valid cell barcodes.

    Returns
    -------
    ReadRecord

    Raises
    ------
    ClassificationError
        If no rule applies.
    """
    seq = read.seq.upper()
    read_len = len(seq)
    common = dict(
        seq_id=read.seq_id,
        seq_desc=read.seq_desc,
        seq=seq,
        quality=read.quality,
        read_num=read.read_num,
        sample_idx=read.sample_idx,
    )

    if read_len >= VDJ_MIN_LEN and read.read_num == 1:
        verdict = annotate_barcode(seq[BARCODE_SLICE], whitelist)
        return ReadRecord(
            library=LibraryType.VDJ_R1,
            insert=seq[VDJ_INSERT_SLICE],
            cell_barcode=verdict.barcode,
            cb_exist=verdict.match_count,
            umi=seq[VDJ_UMI_SLICE],
            switch=seq[VDJ_SWITCH_SLICE],
            **common,
        )

    if read_len >= VDJ_MIN_LEN and read.read_num == 2:
        return ReadRecord(library=LibraryType.VDJ_R2, insert=seq, **common)

    if read_len >= GEX_R2_MIN_LEN and read.read_num == 2:
        return ReadRecord(library=LibraryType.GEX_R2, insert=seq, **common)

    if read_len >= GEX_R1_MIN_LEN and read.read_num == 1:
        verdict = annotate_barcode(seq[BARCODE_SLICE], whitelist)
        return ReadRecord(
            library=LibraryType.GEX_R1,
            insert="",
            cell_barcode=verdict.barcode,
            cb_exist=verdict.match_count,
            umi=seq[GEX_UMI_SLICE],
            **common,
        )

    raise ClassificationError(
        f"Unidentified read '{read.seq_id}' in Read #{read.read_num} "
        f"with length: {read_len}"
    )
