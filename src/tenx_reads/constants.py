"""
Constants for 10x Genomics read import.

Contains the fixed-offset layouts of V(D)J enriched and 5' gene expression
library reads, length thresholds used to tell them apart, and the defaults
for the whitelist and MongoDB connection.
"""

# 10x cell barcode whitelist shipped with Cell Ranger
DEFAULT_WHITELIST_FN = "737K-august-2016.txt"

VALID_BASES = frozenset("ACGT")

# Read layout offsets (0-based, end exclusive)
BARCODE_LEN = 16
UMI_LEN = 10
SWITCH_LEN = 13

BARCODE_SLICE = slice(0, BARCODE_LEN)                       # 0:16
VDJ_UMI_SLICE = slice(BARCODE_LEN, BARCODE_LEN + UMI_LEN)   # 16:26
VDJ_SWITCH_SLICE = slice(
    BARCODE_LEN + UMI_LEN, BARCODE_LEN + UMI_LEN + SWITCH_LEN
)                                                           # 26:39
VDJ_INSERT_SLICE = slice(BARCODE_LEN + UMI_LEN + SWITCH_LEN, None)  # 39:
GEX_UMI_SLICE = slice(BARCODE_LEN, None)                    # 16:

# Minimum read lengths per library layout
VDJ_MIN_LEN = 150       # V(D)J enriched, Read 1 and Read 2
GEX_R2_MIN_LEN = 98     # 5' gene expression, Read 2
GEX_R1_MIN_LEN = BARCODE_LEN + UMI_LEN  # 5' gene expression, Read 1

# FASTQ file extensions
FASTQ_PLAIN_SUFFIXES = (".fq", ".fastq")
FASTQ_GZIP_SUFFIXES = (".fq.gz", ".fastq.gz")

# Log progress every N reads
PROGRESS_INTERVAL = 100_000

# MongoDB defaults
MONGO_HOST = "127.0.0.1"
MONGO_PORT = 27017
MONGO_CONNECT_TIMEOUT_MS = 10_000   # 10 s
MONGO_SOCKET_TIMEOUT_MS = 120_000   # 120 s
READS_COLLECTION = "reads"
INSERT_BATCH_SIZE = 10_000

# Fields indexed after import
READ_INDEX_FIELDS = (
    "seq_id",
    "cell_barcode",
    "umi",
    "cb_exist",
    "read_num",
)

# Statistics output filenames
CB_STAT_FN = "cb_stat.txt"
CB_UMI_STAT_FN = "cb_umi_stat.txt"
