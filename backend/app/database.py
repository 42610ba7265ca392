# backend/app/database.py

from motor.motor_asyncio import AsyncIOMotorClient

from .config import MONGODB_DB, MONGODB_URI

# Initialize the async MongoDB client (connects lazily on first operation)
client = AsyncIOMotorClient(MONGODB_URI)
db = client[MONGODB_DB]  # auto-created on first write
