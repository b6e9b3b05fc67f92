import motor.motor_asyncio
import logging
from typing import Optional, Tuple

# Set up logger
logger = logging.getLogger(__name__)


def mask_mongo_uri(uri: str) -> str:
    """Mask the password in a MongoDB connection string for logging."""
    if '@' not in uri or ':' not in uri:
        return uri

    credentials_part = uri.split('@')[0]
    user_pass = credentials_part.split('://')[-1]
    if ':' not in user_pass:
        return uri

    user, password = user_pass.split(':', 1)
    return uri.replace(user_pass, f"{user}:{'*' * len(password)}", 1)


def split_database_name(uri: str) -> Tuple[str, Optional[str]]:
    """
    Separate the database name from a MongoDB URI.

    Args:
        uri: mongodb:// or mongodb+srv:// URI, optionally ending in /<database>

    Returns:
        tuple: (connection URI without the database, database name or None)
    """
    # Query parameters stay attached to the connection URI
    base, _, query = uri.partition('?')
    uri_parts = base.split('/')
    if len(uri_parts) > 3:  # mongodb://host:port/database format
        potential_db_name = uri_parts[-1].strip()
        if potential_db_name:
            connection_uri = '/'.join(uri_parts[:-1]) + '/'
            if query:
                connection_uri = f"{connection_uri}?{query}"
            return connection_uri, potential_db_name
    return uri, None


def create_client(uri: str):
    """
    Create a motor client and select the database named in the URI.

    The client connects lazily, so this never blocks on the network; an
    unreachable server only surfaces on the first operation.

    Returns:
        tuple: (AsyncIOMotorClient, AsyncIOMotorDatabase)

    Raises:
        ValueError: If the URI does not name a database
    """
    logger.info(f"MongoDB URI configured: {mask_mongo_uri(uri)}")

    connection_uri, db_name = split_database_name(uri)
    if not db_name:
        raise ValueError("Database name not found in MongoDB URI. Please ensure your MONGODB_URL includes the database name.")

    client = motor.motor_asyncio.AsyncIOMotorClient(
        connection_uri,
        maxPoolSize=10,              # Limit to 10 connections max (prevents accumulation)
        minPoolSize=0,
        maxIdleTimeMS=30000,         # Close idle connections after 30 seconds
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=10000,
        tz_aware=True,
    )

    db = client[db_name]
    logger.info(f"MongoDB client created for database: {db_name}")
    return client, db
