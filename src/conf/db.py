import logging

from fastapi import Request
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from src.conf.config import Settings

logger = logging.getLogger(__name__)


def connect(settings: Settings) -> Database:
    """
    Opens the process-wide MongoDB connection and checks that the server answers.

    The database named in the connection string is used when present, otherwise
    ``settings.mongodb_database``.

    :param settings: The application settings.
    :type settings: Settings
    :raises ConnectionFailure: If the server cannot be reached.
    :return: The database handle.
    :rtype: Database
    """
    client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=settings.mongodb_timeout_ms, tz_aware=True)
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        logger.error("MongoDB connection error: %s", e)
        raise ConnectionFailure(f"Could not connect to MongoDB: {e}") from e
    db = client.get_default_database(default=settings.mongodb_database)
    logger.info("Connected to MongoDB database '%s'", db.name)
    return db


def get_db(request: Request) -> Database:
    """
    Returns the database handle opened at startup.

    :param request: The incoming request.
    :type request: Request
    :raises RuntimeError: If the connection was not initialized before the first request.
    :return: The database handle.
    :rtype: Database
    """
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database not initialized. Call connect() during startup first.")
    return db
