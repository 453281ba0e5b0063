from pathlib import Path
from typing import Generator

import pytest

from services.quote_store import SqliteQuoteStore
from tests.helpers.clock import StepClock


@pytest.fixture(scope="function")
def clock() -> StepClock:
    return StepClock()


@pytest.fixture(scope="function")
def store(tmp_path: Path, clock: StepClock) -> Generator[SqliteQuoteStore, None, None]:
    with SqliteQuoteStore(db_file=tmp_path / "quotes.db", clock=clock) as quote_store:
        yield quote_store
