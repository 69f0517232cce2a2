import argparse
import logging
from festival_booking.utils.database import Base, engine

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def init_database(drop: bool = False):
    """Initialize the database by creating all tables."""
    try:
        logger.info("Starting database initialization...")

        if drop:
            Base.metadata.drop_all(bind=engine)
            logger.info("Existing tables dropped")

        # Create all tables defined in the models
        Base.metadata.create_all(bind=engine)

        logger.info("Database tables created successfully!")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the festival booking tables")
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    init_database(drop=parser.parse_args().drop)
