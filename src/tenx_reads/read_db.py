"""
Read database backed by MongoDB.

Provides the output sink for classified reads: documents are buffered and
written to the ``reads`` collection in batches, and the lookup indexes are
created once the import is done.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from .constants import (
    INSERT_BATCH_SIZE,
    MONGO_CONNECT_TIMEOUT_MS,
    MONGO_HOST,
    MONGO_PORT,
    MONGO_SOCKET_TIMEOUT_MS,
    READ_INDEX_FIELDS,
    READS_COLLECTION,
)
from .sequencing_read import ReadRecord

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the read database rejects a write."""
    pass


def connect_client(
    host: str = MONGO_HOST,
    port: int = MONGO_PORT,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> MongoClient:
    """
    Create a MongoDB client with the default connect and socket timeouts.

    Parameters
    ----------
    host : str, default '127.0.0.1'
    port : int, default 27017
    username, password : str, optional
        Credentials, only passed on when given.
    """
    kwargs: Dict[str, Any] = dict(
        host=host,
        port=port,
        connectTimeoutMS=MONGO_CONNECT_TIMEOUT_MS,
        socketTimeoutMS=MONGO_SOCKET_TIMEOUT_MS,
    )
    if username is not None:
        kwargs["username"] = username
    if password is not None:
        kwargs["password"] = password

    logger.info(f"Connecting to MongoDB at {host}:{port}")
    return MongoClient(**kwargs)


class ReadDB:
    """
    Buffered writer for read documents.

    Parameters
    ----------
    collection : pymongo.collection.Collection
        Target collection.
    batch_size : int, default 10000
        Number of documents inserted at one time.
    client : MongoClient, optional
        Client owning the collection; closed by :meth:`close`.

    Examples
    --------
    >>> with ReadDB.connect("pbmc_vdj") as db:
    ...     db.emit(record)
    ...     db.create_indexes()
    """

    def __init__(
        self,
        collection: Collection,
        batch_size: int = INSERT_BATCH_SIZE,
        client: Optional[MongoClient] = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self._collection = collection
        self._batch_size = batch_size
        self._client = client
        self._buffer: List[Dict[str, Any]] = []
        self._n_inserted = 0

    @classmethod
    def connect(
        cls,
        db_name: str,
        host: str = MONGO_HOST,
        port: int = MONGO_PORT,
        batch_size: int = INSERT_BATCH_SIZE,
    ) -> "ReadDB":
        """Open the ``reads`` collection of database ``db_name``."""
        client = connect_client(host=host, port=port)
        collection = client.get_database(db_name).get_collection(READS_COLLECTION)
        return cls(collection, batch_size=batch_size, client=client)

    def __enter__(self) -> "ReadDB":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            # Do not mask the original error with a failing flush
            self._buffer.clear()
            self._close_client()

    def emit(self, record: ReadRecord) -> None:
        """
        Queue a read for insertion, flushing when the buffer is full.

        Raises
        ------
        StoreError
            If a triggered flush fails.
        """
        self._buffer.append(record.to_document())
        if len(self._buffer) >= self._batch_size:
            self.flush()

    def flush(self) -> int:
        """
        Insert all buffered documents.

        Returns
        -------
        int
            Number of documents written.
        """
        if not self._buffer:
            return 0

        docs = self._buffer
        self._buffer = []
        try:
            result = self._collection.insert_many(docs)
        except PyMongoError as e:
            raise StoreError(f"Inserting {len(docs):,} reads failed: {e}") from e

        n_written = len(result.inserted_ids)
        self._n_inserted += n_written
        logger.debug(f"Inserted batch of {n_written:,} reads")
        return n_written

    def create_indexes(self) -> List[str]:
        """Create ascending single-field indexes on the lookup fields."""
        models = [IndexModel([(field, ASCENDING)]) for field in READ_INDEX_FIELDS]
        try:
            names = self._collection.create_indexes(models)
        except PyMongoError as e:
            raise StoreError(f"Creating indexes failed: {e}") from e

        logger.info("Created indexes: " + ", ".join(names))
        return names

    def close(self) -> None:
        """Flush pending documents and close the client, if owned."""
        try:
            self.flush()
        finally:
            self._close_client()

    def _close_client(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    @property
    def n_inserted(self) -> int:
        """Number of documents written so far."""
        return self._n_inserted

    @property
    def n_pending(self) -> int:
        """Number of buffered documents not yet written."""
        return len(self._buffer)
