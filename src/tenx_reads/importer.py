"""
10x reads importer.

Parses paired 10x Genomics FASTQ files, classifies each read, corrects its
cell barcode against the whitelist and writes the result to the read
database.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from os import PathLike
from typing import List, Protocol, Union

from .constants import (
    DEFAULT_WHITELIST_FN,
    INSERT_BATCH_SIZE,
    MONGO_HOST,
    MONGO_PORT,
)
from .fastq import FASTQParseError, FASTQReader
from .read_db import ReadDB, StoreError
from .sequencing_read import ClassificationError, ReadRecord, classify_read
from .whitelist import Whitelist

logger = logging.getLogger(__name__)


class ReadSink(Protocol):
    """Anything that accepts classified reads."""

    def emit(self, record: ReadRecord) -> None:
        ...


@dataclass
class ImportSummary:
    """Read counts for one imported FASTQ file."""

    fastq_fn: str
    n_total: int = 0
    n_inserted: int = 0
    n_corrected: int = 0
    n_malformed: int = 0
    n_unclassified: int = 0

    @property
    def n_skipped(self) -> int:
        return self.n_malformed + self.n_unclassified


class ReadImporter:
    """
    Import 10x reads into a read sink.

    Parameters
    ----------
    whitelist : Whitelist
        Valid cell barcodes. Must be fully loaded before importing.
    sink : ReadSink
        Receives one :class:`ReadRecord` per classified read.

    Attributes
    ----------
    summaries : list of ImportSummary
        One entry per file passed to :meth:`operate_reads`.

    Examples
    --------
    >>> whitelist = Whitelist.load("737K-august-2016.txt")
    >>> with ReadDB.connect("pbmc_vdj") as db:
    ...     importer = ReadImporter(whitelist, db)
    ...     importer.operate_reads("pbmc_R1.fastq.gz")
    ...     importer.operate_reads("pbmc_R2.fastq.gz")
    """

    def __init__(self, whitelist: Whitelist, sink: ReadSink):
        self._whitelist = whitelist
        self._sink = sink
        self.summaries: List[ImportSummary] = []

    def operate_reads(self, fastq_fn: Union[PathLike, str]) -> ImportSummary:
        """
        Parse one FASTQ file and emit its reads.

        Malformed and unclassified reads are logged and skipped.

        Raises
        ------
        FASTQParseError
            If the file type is not supported.
        OSError
            If the file cannot be read.
        StoreError
            If the sink fails.
        """
        logger.info(f"Working on read file: '{fastq_fn}'")
        summary = ImportSummary(fastq_fn=str(fastq_fn))

        with FASTQReader(fastq_fn) as reader:
            for read in reader:
                try:
                    record = classify_read(read, self._whitelist)
                except ClassificationError as e:
                    summary.n_unclassified += 1
                    logger.warning(str(e))
                    continue

                self._sink.emit(record)
                summary.n_inserted += 1
                if record.corrected:
                    summary.n_corrected += 1

            summary.n_total = reader.n_records
            summary.n_malformed = reader.n_malformed

        logger.info(f"Total reads number: {summary.n_total:,}")
        logger.info(f"Inserted reads number: {summary.n_inserted:,}")
        logger.info(f"Corrected cell barcode: {summary.n_corrected:,}")
        if summary.n_skipped:
            logger.info(
                f"Skipped reads: {summary.n_malformed:,} malformed, "
                f"{summary.n_unclassified:,} unclassified"
            )

        self.summaries.append(summary)
        return summary


def main(argv=None):
    """Command-line interface for ReadImporter."""
    parser = argparse.ArgumentParser(
        description='Parse and import 10x reads into a MongoDB database. '
                    'Both plain text and gzipped FASTQ format are supported.'
    )

    parser.add_argument(
        '-i', '--read1',
        required=True,
        help='Read 1 FASTQ file',
    )
    parser.add_argument(
        '-j', '--read2',
        required=True,
        help='Read 2 FASTQ file',
    )
    parser.add_argument(
        '-d', '--db',
        required=True,
        help='MongoDB database name to be created',
    )
    parser.add_argument(
        '-w', '--whitelist',
        default=DEFAULT_WHITELIST_FN,
        help=f'10x cell barcode whitelist (default: {DEFAULT_WHITELIST_FN})',
    )
    parser.add_argument(
        '--host',
        default=MONGO_HOST,
        help='MongoDB host',
    )
    parser.add_argument(
        '--port',
        type=int,
        default=MONGO_PORT,
        help='MongoDB port',
    )
    parser.add_argument(
        '--batch_size',
        type=int,
        default=INSERT_BATCH_SIZE,
        help='Number of documents inserted at one time',
    )
    parser.add_argument(
        '-v', '--debug',
        action='store_true',
        help='Enable debug logging',
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        logger.info("Loading 10x cell barcodes ...")
        whitelist = Whitelist.load(args.whitelist)

        with ReadDB.connect(
            args.db,
            host=args.host,
            port=args.port,
            batch_size=args.batch_size,
        ) as db:
            importer = ReadImporter(whitelist, db)
            importer.operate_reads(args.read1)
            importer.operate_reads(args.read2)
            db.flush()
            db.create_indexes()
    except (OSError, FASTQParseError, StoreError) as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == '__main__':
    main()
