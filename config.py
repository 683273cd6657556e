import os

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
STORE_NAMESPACE = os.getenv("STORE_NAMESPACE", "E-commerce")
STORE_SEED = os.getenv("STORE_SEED", "demo")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))
