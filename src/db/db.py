from pathlib import Path

from sqlalchemy import Engine, create_engine

from db.models import Base


def init_engine(echo: bool = False, *, db_file: str | Path, reset: bool = False) -> Engine:
    path = Path(db_file)
    if reset and path.exists():
        path.unlink()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ingestion writes from worker threads, so connections must not be pinned to their creator.
    engine: Engine = create_engine(f"sqlite:///{path}", echo=echo, connect_args={"check_same_thread": False})

    Base.metadata.create_all(engine)
    return engine
