"""Tests for barcode correction and read classification."""
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest
from conftest import BARCODE, INSERT, SWITCH, UMI

from tenx_reads import (
    ClassificationError,
    CorrectionVerdict,
    LibraryType,
    RawRead,
    Whitelist,
    annotate_barcode,
    classify_read,
    correct_barcode,
    sequencing_read,
)


def make_read(seq, read_num, seq_id="READ1"):
    return RawRead(
        seq_id=seq_id,
        seq_desc=f"{read_num}:N:0:GATCAGCT",
        seq=seq,
        quality="I" * len(seq),
        read_num=read_num,
        sample_idx="GATCAGCT",
    )


# ============================================================================
# correct_barcode
# ============================================================================

def test_correct_single_wildcard_unique_match():
    wl = Whitelist(["AAAACCCCGGGGTTTT"])
    verdict = correct_barcode("AAAACCCCGGGGTTTN", wl)
    assert verdict == CorrectionVerdict(1, "AAAACCCCGGGGTTTT")


def test_correct_single_wildcard_ambiguous():
    wl = Whitelist(["AAAACCCCGGGGTTTT", "AAAACCCCGGGGTTTA"])
    verdict = correct_barcode("AAAACCCCGGGGTTTN", wl)
    assert verdict == CorrectionVerdict(2, "AAAACCCCGGGGTTTN")


def test_correct_single_wildcard_no_match():
    wl = Whitelist(["CCCCAAAATTTTGGGG"])
    verdict = correct_barcode("AAAACCCCGGGGTTTN", wl)
    assert verdict == CorrectionVerdict(0, "AAAACCCCGGGGTTTN")


def test_correct_wildcard_in_middle():
    wl = Whitelist(["AAAACCCCGGGGTTTT", "AAAACCCAGGGGTTTT"])
    assert correct_barcode("AAAACCCNGGGGTTTT", wl) == CorrectionVerdict(2, "AAAACCCNGGGGTTTT")
    assert correct_barcode("AAAANCCCGGGGTTTT", wl) == CorrectionVerdict(1, "AAAACCCCGGGGTTTT")


def test_correct_fixed_positions_must_match():
    # One substitution elsewhere is not corrected
    wl = Whitelist(["AAAACCCCGGGGTTTT"])
    verdict = correct_barcode("AAAACCCCGGGGTTAN", wl)
    assert verdict == CorrectionVerdict(0, "AAAACCCCGGGGTTAN")


def test_correct_two_wildcards_never_searched():
    wl = Whitelist(["AAAACCCCGGGGTTTT"])
    verdict = correct_barcode("AAAACCCCGGGGTTNN", wl)
    assert verdict == CorrectionVerdict(0, "AAAACCCCGGGGTTNN")

    verdict = correct_barcode("NAAACCCCGGGGTTTN", wl)
    assert verdict == CorrectionVerdict(0, "NAAACCCCGGGGTTTN")


def test_correct_ignores_entries_of_other_length():
    wl = Whitelist(["AAAACCCCGGGGTTT", "AAAACCCCGGGGTTTTA"])
    verdict = correct_barcode("AAAACCCCGGGGTTTN", wl)
    assert verdict == CorrectionVerdict(0, "AAAACCCCGGGGTTTN")


def test_correct_without_wildcard_is_exact_lookup():
    wl = Whitelist(["AAAACCCCGGGGTTTT"])
    assert correct_barcode("AAAACCCCGGGGTTTT", wl) == CorrectionVerdict(1, "AAAACCCCGGGGTTTT")
    assert correct_barcode("AAAACCCCGGGGTTTA", wl) == CorrectionVerdict(0, "AAAACCCCGGGGTTTA")


def test_correct_empty_whitelist():
    verdict = correct_barcode("AAAACCCCGGGGTTTN", Whitelist())
    assert verdict == CorrectionVerdict(0, "AAAACCCCGGGGTTTN")


def test_correct_shared_whitelist_across_threads():
    wl = Whitelist(["AAAACCCCGGGGTTTT", "CCCCAAAATTTTGGGG"])
    observed = ["AAAACCCCGGGGTTTN", "CCCCAAAATTTTGGGN", "NNNNAAAATTTTGGGG"] * 20

    with ThreadPoolExecutor(max_workers=4) as pool:
        verdicts = list(pool.map(lambda bc: correct_barcode(bc, wl), observed))

    assert verdicts[:3] == [
        (1, "AAAACCCCGGGGTTTT"),
        (1, "CCCCAAAATTTTGGGG"),
        (0, "NNNNAAAATTTTGGGG"),
    ]
    assert verdicts == verdicts[:3] * 20


# ============================================================================
# annotate_barcode
# ============================================================================

def test_annotate_exact_member():
    wl = Whitelist([BARCODE])
    assert annotate_barcode(BARCODE, wl) == CorrectionVerdict(1, BARCODE)


def test_annotate_absent_acgt_barcode_not_corrected():
    wl = Whitelist([BARCODE])
    assert annotate_barcode("AAAACCCCGGGGTTTA", wl) == CorrectionVerdict(0, "AAAACCCCGGGGTTTA")


def test_annotate_delegates_to_correction():
    wl = Whitelist([BARCODE])
    assert annotate_barcode("AAAACCCCGGGGTTTN", wl) == CorrectionVerdict(1, BARCODE)


# ============================================================================
# classify_read
# ============================================================================

def test_classify_vdj_read1_fields(whitelist):
    seq = BARCODE + UMI + SWITCH + INSERT
    assert len(seq) == 150

    record = classify_read(make_read(seq, 1), whitelist)

    assert record.library is LibraryType.VDJ_R1
    assert record.cell_barcode == BARCODE
    assert record.umi == UMI
    assert record.switch == SWITCH
    assert record.insert == INSERT
    assert record.cb_exist == 1
    assert not record.corrected
    assert record.cell_barcode + record.umi + record.switch + record.insert == seq


def test_classify_uppercases_sequence(whitelist):
    seq = (BARCODE + UMI + SWITCH + INSERT).lower()
    record = classify_read(make_read(seq, 1), whitelist)

    assert record.seq == seq.upper()
    assert record.cell_barcode == BARCODE
    assert record.cb_exist == 1


def test_classify_corrects_barcode(whitelist):
    seq = "AAAACCCCGGGGTTTN" + UMI + SWITCH + INSERT
    record = classify_read(make_read(seq, 1), whitelist)

    assert record.cell_barcode == BARCODE
    assert record.cb_exist == 1
    assert record.corrected


def test_classify_unknown_barcode_kept(whitelist):
    seq = "TTTTTTTTTTTTTTTT" + UMI + SWITCH + INSERT
    record = classify_read(make_read(seq, 1), whitelist)

    assert record.cell_barcode == "TTTTTTTTTTTTTTTT"
    assert record.cb_exist == 0
    assert not record.corrected


def test_classify_vdj_read2(whitelist):
    seq = "G" * 150
    record = classify_read(make_read(seq, 2), whitelist)

    assert record.library is LibraryType.VDJ_R2
    assert record.insert == seq
    assert record.cell_barcode is None
    assert record.umi is None


def test_classify_gex_read2(whitelist):
    seq = "C" * 98
    record = classify_read(make_read(seq, 2), whitelist)

    assert record.library is LibraryType.GEX_R2
    assert record.insert == seq


def test_classify_gex_read1(whitelist):
    seq = BARCODE + UMI + "AC"
    record = classify_read(make_read(seq, 1), whitelist)

    assert record.library is LibraryType.GEX_R1
    assert record.cell_barcode == BARCODE
    assert record.umi == UMI + "AC"
    assert record.switch is None
    assert record.insert == ""


def test_classify_gex_read1_ambiguous_barcode():
    wl = Whitelist(["AAAACCCCGGGGTTTT", "AAAACCCCGGGGTTTA"])
    seq = "AAAACCCCGGGGTTTN" + UMI
    record = classify_read(make_read(seq, 1), wl)

    assert record.cell_barcode == "AAAACCCCGGGGTTTN"
    assert record.cb_exist == 2


@pytest.mark.parametrize("seq_len, read_num", [
    (25, 1),    # too short for 5' GEX Read 1
    (97, 2),    # too short for 5' GEX Read 2
    (150, 3),   # unknown read number
])
def test_classify_unidentified_read(whitelist, seq_len, read_num):
    with pytest.raises(ClassificationError):
        classify_read(make_read("A" * seq_len, read_num), whitelist)


def test_to_document_read1(whitelist):
    seq = BARCODE + UMI + SWITCH + INSERT
    doc = classify_read(make_read(seq, 1), whitelist).to_document()

    assert doc["cell_barcode"] == BARCODE
    assert doc["cb_exist"] == 1
    assert doc["umi"] == UMI
    assert doc["switch"] == SWITCH
    assert doc["read_num"] == 1
    assert doc["sample_idx"] == "GATCAGCT"
    assert doc["library"] == "vdj_r1"


def test_to_document_read2_has_no_barcode(whitelist):
    doc = classify_read(make_read("A" * 150, 2), whitelist).to_document()

    assert "cell_barcode" not in doc
    assert "umi" not in doc
    assert "switch" not in doc
    assert doc["insert"] == "A" * 150


def test_whitelisted_barcode_skips_correction(whitelist):
    seq = BARCODE + UMI + SWITCH + INSERT
    with mock.patch.object(sequencing_read, "correct_barcode") as correct:
        record = classify_read(make_read(seq, 1), whitelist)

    correct.assert_not_called()
    assert record.cb_exist == 1


@pytest.mark.parametrize("seq_len, read_num, library", [
    (26, 1, LibraryType.GEX_R1),
    (149, 1, LibraryType.GEX_R1),
    (150, 1, LibraryType.VDJ_R1),
    (98, 2, LibraryType.GEX_R2),
    (149, 2, LibraryType.GEX_R2),
    (150, 2, LibraryType.VDJ_R2),
])
def test_classify_length_boundaries(whitelist, seq_len, read_num, library):
    seq = (BARCODE + UMI + SWITCH + INSERT)[:seq_len]
    record = classify_read(make_read(seq, read_num), whitelist)

    assert record.library is library
    if read_num == 1:
        assert record.cell_barcode == BARCODE
    else:
        assert record.insert == seq
