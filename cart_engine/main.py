# cart_engine/main.py
import uvicorn

from cart_engine.api import create_app
from cart_engine.data.database import Base, engine, init_db
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)

logger.info("Initializing database")
try:
    init_db()
    logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")
except Exception as e:
    logger.error(f"Failed to create tables on {engine.url!r}: {e}")
    raise

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
