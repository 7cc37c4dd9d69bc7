"""Create the marker schema, waiting for the database to accept connections."""

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from qrsync.core.config import get_settings
from qrsync.db.session import build_engine, create_schema

MAX_ATTEMPTS = 30


def main() -> None:
    engine = build_engine(get_settings().database_url.get_secret_value())
    try:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                create_schema(engine)
                return
            except OperationalError:
                if attempt == MAX_ATTEMPTS:
                    raise
                time.sleep(1)
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
