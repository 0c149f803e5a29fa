"""
FASTQ reading for 10x Genomics reads.

Opens plain or gzipped FASTQ files and yields raw reads with the read
number and sample index parsed from the header description. Malformed
records are logged and skipped.
"""

import gzip
import logging
import re
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import IO, Iterator, List, Optional, Tuple, Union

from .constants import FASTQ_GZIP_SUFFIXES, FASTQ_PLAIN_SUFFIXES, PROGRESS_INTERVAL

logger = logging.getLogger(__name__)

# '@<seq id> <description>', e.g. '@A00123:8:H5:1:1101:1000:1000 1:N:0:GATCAGCT'
HEADER_RE = re.compile(r"^@(\S+)\s+(\S+)$")


class FASTQParseError(Exception):
    """Raised when FASTQ parsing encounters an error."""
    pass


class FASTQFormatError(FASTQParseError):
    """Raised for a malformed FASTQ record (bad header, separator or truncation)."""
    pass


@dataclass(frozen=True)
class RawRead:
    """A single FASTQ record with its header description parsed."""

    seq_id: str
    seq_desc: str
    seq: str
    quality: str
    read_num: int
    sample_idx: str = ""


def parse_header(line: str) -> Tuple[str, str, int, str]:
    """
    Parse a FASTQ identifier line.

    The description is colon-delimited: ``<read num>:<is filtered>:
    <control num>:<sample index>``.

    Parameters
    ----------
    line : str
        Identifier line including the leading ``@``.

    Returns
    -------
    seq_id : str
    seq_desc : str
    read_num : int
    sample_idx : str
        Sample index, or an empty string if the description has fewer
        than four fields.

    Raises
    ------
    FASTQFormatError
        If the line has no description or the read number is not an integer.

    Examples
    --------
    >>> parse_header("@READ1 1:N:0:GATCAGCT")
    ('READ1', '1:N:0:GATCAGCT', 1, 'GATCAGCT')
    """
    match = HEADER_RE.match(line.rstrip("\r\n"))
    if match is None:
        raise FASTQFormatError(f"Malformed FASTQ header: '{line.rstrip()}'")

    seq_id, seq_desc = match.groups()
    fields = seq_desc.split(":")

    try:
        read_num = int(fields[0])
    except ValueError:
        raise FASTQFormatError(
            f"Cannot parse read number from '{seq_desc}' for '{seq_id}'"
        ) from None

    sample_idx = fields[3] if len(fields) > 3 else ""

    return seq_id, seq_desc, read_num, sample_idx


def open_fastq(fastq_fn: Union[PathLike, str]) -> IO[str]:
    """
    Open a FASTQ file for reading in text mode.

    Raises
    ------
    FASTQParseError
        If the filename does not end in .fq, .fastq, .fq.gz or .fastq.gz.
    OSError
        If the file cannot be opened.
    """
    name = str(fastq_fn)

    if name.endswith(FASTQ_PLAIN_SUFFIXES):
        return open(fastq_fn, "r")
    if name.endswith(FASTQ_GZIP_SUFFIXES):
        return gzip.open(fastq_fn, "rt")

    raise FASTQParseError(f"Unsupported file type for '{name}'")


class FASTQReader:
    """
    Iterate over the records of a FASTQ file.

    Parameters
    ----------
    fastq_fn : PathLike or str
        Plain or gzipped FASTQ file.

    Attributes
    ----------
    n_records : int
        Number of identifier lines seen so far.
    n_malformed : int
        Number of records skipped because they were malformed.

    Examples
    --------
    >>> with FASTQReader("sample_R1.fastq.gz") as reader:
    ...     for read in reader:
    ...         print(read.seq_id, read.read_num)
    """

    def __init__(self, fastq_fn: Union[PathLike, str]):
        self.fastq_fn = Path(fastq_fn)
        self.n_records = 0
        self.n_malformed = 0
        self._handle: Optional[IO[str]] = None

    def __enter__(self) -> "FASTQReader":
        self._handle = open_fastq(self.fastq_fn)
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __iter__(self) -> Iterator[RawRead]:
        if self._handle is None:
            with self:
                yield from self._records(self._handle)
        else:
            yield from self._records(self._handle)

    def _records(self, handle: IO[str]) -> Iterator[RawRead]:
        lines = iter(handle)
        pending: List[str] = []

        def next_line() -> Optional[str]:
            if pending:
                return pending.pop()
            line = next(lines, None)
            return None if line is None else line.rstrip("\r\n")

        while True:
            line = next_line()
            if line is None:
                break

            if not line.strip() or line.startswith("#"):
                continue
            if not line.startswith("@"):
                logger.debug(f"Skipping stray line in {self.fastq_fn.name}: '{line}'")
                continue

            self.n_records += 1
            if self.n_records % PROGRESS_INTERVAL == 0:
                logger.info(f"{self.fastq_fn.name}: {self.n_records:,} reads processed...")

            seq = next_line()
            separator = next_line()

            if seq is None or separator is None:
                self._skip(FASTQFormatError(f"Truncated FASTQ record '{line}'"))
                break

            if not separator.startswith("+"):
                # Next record may start on the line we took as separator
                if separator.startswith("@"):
                    pending.append(separator)
                self._skip(FASTQFormatError(
                    f"May be not FASTQ format for '{line}': missing '+' separator"
                ))
                continue

            quality = next_line()
            if quality is None:
                self._skip(FASTQFormatError(f"Truncated FASTQ record '{line}'"))
                break

            try:
                seq_id, seq_desc, read_num, sample_idx = parse_header(line)
            except FASTQFormatError as e:
                self._skip(e)
                continue

            yield RawRead(
                seq_id=seq_id,
                seq_desc=seq_desc,
                seq=seq,
                quality=quality,
                read_num=read_num,
                sample_idx=sample_idx,
            )

    def _skip(self, error: FASTQFormatError) -> None:
        self.n_malformed += 1
        logger.warning(f"{self.fastq_fn.name}: {error}; record skipped")
