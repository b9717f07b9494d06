import re
import logging
from typing import Optional

import motor.motor_asyncio
from beanie import init_beanie
from app.database.models import User, StudentDocument, AuditLog
from app.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [User, StudentDocument, AuditLog]

_client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None
database = None


# Never log full connection URIs, they may contain credentials
def _mask_mongo_uri(uri: str) -> str:
    m = re.match(r'(?P<prefix>mongodb(?:\+srv)?://)(?:(?P<creds>[^@]+)@)?(?P<rest>.+)', uri or "")
    if not m:
        return "mongodb://<redacted>"
    host_part = m.group('rest').split('/')[0]
    return f"{m.group('prefix')}***@{host_part}"


def _require(name: str, value: Optional[str]) -> str:
    if not value:
        logger.error(f"{name} is not set in environment variables")
        raise RuntimeError(f"Configuration error: {name} is not set in environment variables")
    return value


# Connects to MongoDB and registers the portal's document models with Beanie
async def init_db():
    global _client, database
    mongodb_uri = _require("MONGODB_URI", settings.MONGODB_URI)
    mongodb_db_name = _require("MONGODB_DB_NAME", settings.MONGODB_DB_NAME)

    logger.info(f"Connecting to MongoDB at {_mask_mongo_uri(mongodb_uri)}, database {mongodb_db_name}")
    client = motor.motor_asyncio.AsyncIOMotorClient(
        mongodb_uri,
        serverSelectionTimeoutMS=30000,
        connectTimeoutMS=30000,
        socketTimeoutMS=30000,
        retryWrites=True,
        w='majority'
    )
    try:
        await client.admin.command('ping')
        await init_beanie(client[mongodb_db_name], document_models=DOCUMENT_MODELS)
    except Exception as e:
        logger.error(f"Database initialization failed: {type(e).__name__}: {e}")
        client.close()
        raise

    _client = client
    database = client[mongodb_db_name]
    logger.info(f"Beanie initialized with {len(DOCUMENT_MODELS)} document models")
    return database


async def close_db():
    global _client, database
    if _client is not None:
        _client.close()
        logger.info("MongoDB connection closed")
    _client = None
    database = None

