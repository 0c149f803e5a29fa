"""
Read statistics by cell barcode and UMI.

Runs aggregation pipelines over an imported ``reads`` collection and
writes the per-barcode and per-(barcode, UMI) read counts as tables.
"""

import argparse
import logging
import sys
from os import PathLike
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional, Union

import pandas as pd
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .constants import (
    CB_STAT_FN,
    CB_UMI_STAT_FN,
    MONGO_HOST,
    MONGO_PORT,
    READS_COLLECTION,
)
from .read_db import StoreError, connect_client

logger = logging.getLogger(__name__)

CB_COLUMNS = ['Barcode', 'Reads_number']
CB_UMI_COLUMNS = ['Barcode', 'UMI', 'Reads_number']


def cb_pipeline() -> List[Dict[str, Any]]:
    """Aggregation pipeline counting Read 1 reads per cell barcode."""
    return [
        {'$match': {'read_num': 1}},
        {'$group': {
            '_id': '$cell_barcode',
            'num_reads': {'$sum': 1},
        }},
        {'$sort': {'num_reads': -1}},
    ]


def cb_umi_pipeline() -> List[Dict[str, Any]]:
    """Aggregation pipeline counting Read 1 reads per (cell barcode, UMI)."""
    return [
        {'$match': {'read_num': 1}},
        {'$group': {
            '_id': {'cb': '$cell_barcode', 'umi': '$umi'},
            'num_reads': {'$sum': 1},
        }},
        {'$sort': {'num_reads': -1}},
    ]


def cb_docs_to_frame(docs: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Convert per-barcode aggregation output to a table, keeping its order."""
    rows = [(doc['_id'], doc['num_reads']) for doc in docs]
    return pd.DataFrame(rows, columns=CB_COLUMNS)


def cb_umi_docs_to_frame(docs: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Convert per-(barcode, UMI) aggregation output to a table."""
    rows = [
        (doc['_id'].get('cb'), doc['_id'].get('umi'), doc['num_reads'])
        for doc in docs
    ]
    return pd.DataFrame(rows, columns=CB_UMI_COLUMNS)


def cb_stats(collection: Collection) -> pd.DataFrame:
    """
    Number of Read 1 reads per cell barcode.

    Returns
    -------
    pd.DataFrame
        Columns ``Barcode`` and ``Reads_number``, sorted by count descending.
    """
    logger.info("Statistics of Cell Barcodes ...")
    try:
        cursor = collection.aggregate(cb_pipeline())
        return cb_docs_to_frame(cursor)
    except PyMongoError as e:
        raise StoreError(f"Cell barcode aggregation failed: {e}") from e


def cb_umi_stats(collection: Collection) -> pd.DataFrame:
    """
    Number of Read 1 reads per cell barcode and UMI.

    Grouping by UMI can exceed the server's in-memory sort limit, so the
    aggregation is allowed to spill to disk.
    """
    logger.info("Statistics of Cell Barcodes and UMI ...")
    try:
        cursor = collection.aggregate(cb_umi_pipeline(), allowDiskUse=True)
        return cb_umi_docs_to_frame(cursor)
    except PyMongoError as e:
        raise StoreError(f"Cell barcode/UMI aggregation failed: {e}") from e


def write_table(
    df: pd.DataFrame,
    out_fn: Union[PathLike, str],
    format: Literal['tsv', 'excel'] = 'tsv',
) -> Path:
    """
    Save a statistics table.

    ``tsv`` writes tab-separated text to ``out_fn``; ``excel`` writes the
    same table to ``out_fn`` with an ``.xlsx`` suffix.

    Returns
    -------
    Path
        The file written.
    """
    out_fn = Path(out_fn)
    if format == 'excel':
        out_fn = out_fn.with_suffix('.xlsx')
        df.to_excel(out_fn, index=False, engine='openpyxl')
    else:
        df.to_csv(out_fn, sep='\t', index=False)

    logger.info(f"Wrote {len(df):,} rows to {out_fn}")
    return out_fn


def run_stats(
    collection: Collection,
    results_path: Union[PathLike, str] = '.',
    format: Literal['tsv', 'excel'] = 'tsv',
) -> List[Path]:
    """Compute both statistics tables and write them to ``results_path``."""
    results_path = Path(results_path)
    results_path.mkdir(parents=True, exist_ok=True)

    return [
        write_table(cb_stats(collection), results_path / CB_STAT_FN, format=format),
        write_table(cb_umi_stats(collection), results_path / CB_UMI_STAT_FN, format=format),
    ]


def main(argv: Optional[List[str]] = None):
    """Command-line interface for read statistics."""
    parser = argparse.ArgumentParser(
        description='Statistics of 10x reads in given MongoDB database '
                    'by Cell Barcodes and UMI'
    )

    parser.add_argument(
        '-d', '--db',
        required=True,
        help='MongoDB database name',
    )
    parser.add_argument(
        '--host',
        default=MONGO_HOST,
        help=f'Hostname or IP address to be connected (default: {MONGO_HOST})',
    )
    parser.add_argument(
        '--port',
        type=int,
        default=MONGO_PORT,
        help=f'Port (default: {MONGO_PORT})',
    )
    parser.add_argument(
        '--user',
        default=None,
        help='Username',
    )
    parser.add_argument(
        '--pwd',
        default=None,
        help='Password',
    )
    parser.add_argument(
        '--results_path',
        default='.',
        help='Path to output directory',
    )
    parser.add_argument(
        '--format',
        choices=['tsv', 'excel'],
        default='tsv',
        help='Output format',
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

    client = connect_client(
        host=args.host,
        port=args.port,
        username=args.user,
        password=args.pwd,
    )
    try:
        collection = client.get_database(args.db).get_collection(READS_COLLECTION)
        run_stats(collection, args.results_path, format=args.format)
    except (OSError, StoreError) as e:
        logger.error(str(e))
        sys.exit(1)
    finally:
        client.close()


if __name__ == '__main__':
    main()
