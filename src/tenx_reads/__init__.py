"""
tenx-reads - 10x Genomics read import and statistics.

This package parses 10x Genomics V(D)J enriched and 5' gene expression
FASTQ reads, corrects their cell barcodes against a whitelist, and stores
them in MongoDB for per-cell statistics.

Main Classes
------------
Whitelist
    Immutable set of valid cell barcodes.

ReadImporter
    Import FASTQ files into a read sink.

ReadDB
    Buffered MongoDB writer for classified reads.

FASTQReader
    Iterate over plain or gzipped FASTQ records.

Functions
---------
correct_barcode
    Correct a barcode with one ambiguous base against the whitelist.

classify_read
    Classify a read by library layout and extract its fields.

Command-line scripts
--------------------
tenx-reads2db, tenx-read-stats, sort-seq-by-len

Examples
--------
>>> from tenx_reads import Whitelist, correct_barcode
>>> wl = Whitelist(["AAAACCCCGGGGTTTT"])
>>> correct_barcode("AAAACCCCGGGGTTTN", wl)
CorrectionVerdict(match_count=1, barcode='AAAACCCCGGGGTTTT')
"""

from .fastq import FASTQFormatError, FASTQParseError, FASTQReader, RawRead, parse_header
from .importer import ImportSummary, ReadImporter
from .read_db import ReadDB, StoreError, connect_client
from .sequencing_read import (
    ClassificationError,
    CorrectionVerdict,
    LibraryType,
    ReadRecord,
    annotate_barcode,
    classify_read,
    correct_barcode,
)
from .whitelist import Whitelist

__all__ = [
    # Main classes
    "Whitelist",
    "ReadImporter",
    "ReadDB",
    "FASTQReader",
    # Records
    "RawRead",
    "ReadRecord",
    "LibraryType",
    "CorrectionVerdict",
    "ImportSummary",
    # Functions
    "correct_barcode",
    "annotate_barcode",
    "classify_read",
    "parse_header",
    "connect_client",
    # Errors
    "FASTQParseError",
    "FASTQFormatError",
    "ClassificationError",
    "StoreError",
]

__version__ = "0.1.0"
