"""Shared fixtures for tenx_reads tests."""
import gzip

import pytest

from tenx_reads import Whitelist

BARCODE = "AAAACCCCGGGGTTTT"
UMI = "ACGTACGTAC"
SWITCH = "TTTCTTATATGGG"
INSERT = "ACGT" * 27 + "ACG"   # 111 bp


class ListSink:
    """Read sink collecting records in memory."""

    def __init__(self):
        self.records = []

    def emit(self, record):
        self.records.append(record)


def fastq_text(records):
    """Render (header, seq) pairs as FASTQ text."""
    lines = []
    for header, seq in records:
        lines += [header, seq, "+", "I" * len(seq)]
    return "\n".join(lines) + "\n"


@pytest.fixture
def whitelist():
    return Whitelist([BARCODE, "CCCCAAAATTTTGGGG", "GGGGTTTTAAAACCCC"])


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def write_fastq(tmp_path):
    """Write FASTQ records to a plain or gzipped file."""
    def _write(name, records):
        path = tmp_path / name
        text = fastq_text(records) if not isinstance(records, str) else records
        if name.endswith(".gz"):
            with gzip.open(path, "wt") as f:
                f.write(text)
        else:
            path.write_text(text)
        return path
    return _write
