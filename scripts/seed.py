from pathlib import Path

from heritage_crafts.core.logging_config import setup_logging
from heritage_crafts.db.seed import seed_all
from heritage_crafts.db.session import Session, engine, init_db

SEED_PATH = Path(__file__).resolve().parent.parent / "heritage_crafts" / "db" / "seed_data.yaml"


def run_seed():
    setup_logging()
    init_db()
    with Session(engine) as session:
        seed_all(session=session, seed_path=SEED_PATH)


if __name__ == "__main__":
    run_seed()
