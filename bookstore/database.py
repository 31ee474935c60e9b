"""Database layer that executes catalog specs against MongoDB."""
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from pymongo import MongoClient
from pymongo.errors import PyMongoError
from pymongo.results import DeleteResult, UpdateResult

from bookstore.models import (
    AggregationPipeline,
    Book,
    CountSpec,
    DeleteSpec,
    DistinctSpec,
    ExplainSpec,
    IndexSpec,
    QuerySpec,
    UpdateSpec,
)
from bookstore.parse import book_to_document

logger = logging.getLogger(__name__)


class BookstoreDatabase:
    """MongoDB books collection behind a single client."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        collection_name: str,
        client: Optional[MongoClient] = None,
        server_selection_timeout_ms: int = 5000
    ):
        """
        Connect to the books collection.

        Args:
            uri: MongoDB connection string
            db_name: Target database
            collection_name: Target collection
            client: Existing client to use instead of creating one
            server_selection_timeout_ms: How long to wait for a server
        """
        self._owns_client = client is None
        self.client = client if client is not None else MongoClient(
            uri,
            serverSelectionTimeoutMS=server_selection_timeout_ms
        )
        self.db = self.client[db_name]
        self.collection = self.db[collection_name]
        self.collection_name = collection_name

        logger.info(f"Using collection {db_name}.{collection_name}")

    @classmethod
    def from_config(cls, config, client: Optional[MongoClient] = None) -> "BookstoreDatabase":
        """Build from a :class:`bookstore.config.Config`."""
        options = config.connection_options
        return cls(
            options["uri"],
            options["dbName"],
            options["collectionName"],
            client=client,
            server_selection_timeout_ms=config.SERVER_SELECTION_TIMEOUT_MS
        )

    def _execute(self, operation: str, call: Callable[[], Any]) -> Any:
        """Run a driver call, logging it; driver errors are re-raised untouched."""
        logger.info(f"{operation} on {self.collection_name}")
        try:
            return call()
        except PyMongoError as e:
            logger.error(f"{operation} on {self.collection_name} failed: {e}")
            raise

    def find(self, spec: QuerySpec) -> List[Dict[str, Any]]:
        """
        Run a find query.

        Args:
            spec: Filter, projection, sort and pagination

        Returns:
            Matching documents
        """
        def run():
            cursor = self.collection.find(spec.filter, spec.projection)
            if spec.sort:
                cursor = cursor.sort(list(spec.sort))
            if spec.skip:
                cursor = cursor.skip(spec.skip)
            if spec.limit:
                cursor = cursor.limit(spec.limit)
            return list(cursor)

        return self._execute("find", run)

    def update(self, spec: UpdateSpec) -> UpdateResult:
        """
        Run updateOne or updateMany.

        Returns:
            The driver's UpdateResult; ``matched_count == 0`` means nothing matched
        """
        if spec.many:
            return self._execute(
                spec.operation,
                lambda: self.collection.update_many(spec.filter, spec.update)
            )
        return self._execute(
            spec.operation,
            lambda: self.collection.update_one(spec.filter, spec.update)
        )

    def delete(self, spec: DeleteSpec) -> DeleteResult:
        return self._execute("deleteOne", lambda: self.collection.delete_one(spec.filter))

    def count(self, spec: CountSpec) -> int:
        return self._execute("countDocuments", lambda: self.collection.count_documents(spec.filter))

    def distinct(self, spec: DistinctSpec) -> List[Any]:
        return self._execute("distinct", lambda: self.collection.distinct(spec.key, spec.filter))

    def aggregate(self, pipeline: AggregationPipeline) -> List[Dict[str, Any]]:
        """Run an aggregation pipeline, stages in authored order."""
        return self._execute(
            f"aggregate[{pipeline.name}]",
            lambda: list(self.collection.aggregate(pipeline.to_list()))
        )

    def create_indexes(self, specs: Iterable[IndexSpec]) -> List[str]:
        """
        Create indexes, one createIndex call per spec.

        Args:
            specs: Index definitions (a set is fine; order is made deterministic)

        Returns:
            Names of the created (or already existing) indexes
        """
        names = []
        for spec in sorted(specs, key=lambda s: s.keys):
            options = {"name": spec.name} if spec.name else {}
            name = self._execute(
                "createIndex",
                lambda: self.collection.create_index(list(spec.keys), **options)
            )
            logger.info(f"Index ready: {name}")
            names.append(name)
        return names

    def explain(self, spec: ExplainSpec) -> Dict[str, Any]:
        """
        Explain a find query.

        Args:
            spec: The find to explain and the verbosity

        Returns:
            The explain command's response
        """
        command = {
            "explain": spec.query.to_command(self.collection_name),
            "verbosity": spec.verbosity,
        }
        return self._execute("explain", lambda: self.db.command(command))

    def seed(self, books: Iterable[Book], drop: bool = False) -> int:
        """
        Insert books into the collection.

        Args:
            books: Books to insert
            drop: Remove all existing documents first

        Returns:
            Number of documents inserted
        """
        documents = [book_to_document(book) for book in books]
        if drop:
            self._execute("deleteMany", lambda: self.collection.delete_many({}))
        if not documents:
            return 0

        result = self._execute("insertMany", lambda: self.collection.insert_many(documents))
        logger.info(f"Inserted {len(result.inserted_ids)} books")
        return len(result.inserted_ids)

    def ping(self) -> bool:
        """Check the server is reachable."""
        self._execute("ping", lambda: self.client.admin.command("ping"))
        return True

    def close(self):
        """Close the client if this database opened it."""
        if self._owns_client:
            self.client.close()
            logger.info("MongoDB client closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
