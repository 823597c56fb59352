import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/cafe_db")

# Application Metadata
PROJECT_NAME = "Cafe Back-Office Core"
VERSION = "1.0.0"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Connection-level retry for transient database failures
DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", 5))
DB_RETRY_BASE_DELAY = float(os.getenv("DB_RETRY_BASE_DELAY", 1.0)) # seconds, doubled per attempt
DB_RETRY_MAX_DELAY = float(os.getenv("DB_RETRY_MAX_DELAY", 10.0))

# What order placement does when an ingredient is short: "strict" aborts the order,
# "lenient" logs and skips the ingredient.
STOCK_SHORTAGE_POLICY = os.getenv("STOCK_SHORTAGE_POLICY", "strict").lower()

# Pagination for list endpoints
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 20))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 100))

DEFAULT_INVENTORY_CATEGORIES = [
    "Beverages",
    "Dairy",
    "Grains",
    "Produce",
    "Meats",
    "Spices",
    "Baking",
    "Other",
]
