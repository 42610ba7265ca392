# backend/app/config.py

import os

from dotenv import find_dotenv, load_dotenv

# A .env in the project root is optional; process env wins when both set a key
load_dotenv(find_dotenv())

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "eth_terminal")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
