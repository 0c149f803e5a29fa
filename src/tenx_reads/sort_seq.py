"""
Sort sequences in a multi-FASTA file by length.

Output goes to stdout, one record per block: the header annotated with the
sequence length, the sequence on a single line, and a blank line.
"""

import argparse
import gzip
import logging
import sys
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Literal, Union

from Bio.SeqIO.FastaIO import SimpleFastaParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FastaRecord:
    seq_id: str
    desc: str
    seq: str

    def __len__(self) -> int:
        return len(self.seq)


def _content_lines(handle: IO[str]) -> Iterator[str]:
    for line in handle:
        if line.startswith('#') or not line.strip():
            continue
        yield line.rstrip('\r\n') + '\n'


def read_fasta(fasta_fn: Union[PathLike, str]) -> List[FastaRecord]:
    """
    Read all records of a (optionally gzipped) FASTA file.

    Blank lines and lines starting with ``#`` are ignored. The header is
    split at the first whitespace into ID and description.
    """
    fasta_fn = Path(fasta_fn)
    opener = gzip.open if fasta_fn.suffix == '.gz' else open

    records = []
    with opener(fasta_fn, 'rt') as handle:
        for title, seq in SimpleFastaParser(_content_lines(handle)):
            parts = title.split(None, 1)
            seq_id = parts[0] if parts else ''
            desc = parts[1].strip() if len(parts) > 1 else ''
            records.append(FastaRecord(seq_id, desc, seq))

    logger.debug(f"Read {len(records):,} sequences from {fasta_fn}")
    return records


def sort_by_length(
    records: Iterable[FastaRecord],
    order: Literal['asc', 'desc'] = 'desc',
) -> List[FastaRecord]:
    """Sort records by sequence length; equal lengths keep input order."""
    if order not in ('asc', 'desc'):
        raise ValueError(f"Unknown sort option '{order}'")

    return sorted(records, key=len, reverse=(order == 'desc'))


def format_record(record: FastaRecord) -> str:
    header = ' '.join(p for p in (record.seq_id, record.desc, str(len(record))) if p)
    return f">{header}\n{record.seq}\n\n"


def write_fasta(records: Iterable[FastaRecord], handle: IO[str]) -> None:
    for record in records:
        handle.write(format_record(record))


def main(argv=None):
    """Command-line interface for sorting FASTA records by length."""
    parser = argparse.ArgumentParser(
        description='Sort sequences in a multi-FASTA format file by length. '
                    'Output to STDOUT.'
    )
    parser.add_argument(
        'fasta_fn',
        help='Input FASTA file',
    )
    parser.add_argument(
        'order',
        nargs='?',
        choices=['asc', 'desc'],
        default='desc',
        help='Sort order (default: desc)',
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        records = read_fasta(args.fasta_fn)
    except OSError as e:
        logger.error(f"Open file '{args.fasta_fn}' failed: {e}")
        sys.exit(1)

    write_fasta(sort_by_length(records, args.order), sys.stdout)


if __name__ == '__main__':
    main()
