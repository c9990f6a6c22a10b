import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from tuition.core.config import settings

logger = structlog.get_logger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""
    
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]
    
    await create_indexes()
    logger.info("Connected to MongoDB", database=settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    # Human-readable student code is unique
    await mongodb.db.students.create_index("studentId", unique=True)
    await mongodb.db.students.create_index("status")
    
    # Payments are looked up per student and ranged by date
    await mongodb.db.payments.create_index("studentId")
    await mongodb.db.payments.create_index("date")
    
    await mongodb.db.fee_templates.create_index("category")
