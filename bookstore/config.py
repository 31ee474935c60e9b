"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # Database
    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME = os.getenv("MONGO_DB_NAME", "plp_bookstore")
    COLLECTION_NAME = os.getenv("MONGO_COLLECTION", "books")
    SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("SERVER_SELECTION_TIMEOUT_MS", "5000"))

    # Defaults
    DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "5"))

    @property
    def connection_options(self):
        """Connection target as ``{uri, dbName, collectionName}``."""
        return {
            "uri": self.MONGO_URI,
            "dbName": self.DB_NAME,
            "collectionName": self.COLLECTION_NAME,
        }
