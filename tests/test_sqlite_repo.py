from datetime import timedelta

import pytest
import pytest_asyncio

from ambient_light.core.timeutil import now_utc
from ambient_light.domain.models import Reading
from ambient_light.storage.sqlite_repo import SQLiteRepository


@pytest_asyncio.fixture
async def repo(tmp_path):
    r = SQLiteRepository(str(tmp_path / "readings.db"))
    await r.init()
    return r


@pytest.mark.asyncio
async def test_insert_and_query_in_order(repo):
    t0 = now_utc() - timedelta(minutes=5)
    for i, source in enumerate(["pull", "notification", "mqtt"]):
        await repo.insert_reading(
            Reading(ts_utc=t0 + timedelta(seconds=i), sensor_id="porch", value=float(i), source=source)
        )

    rows = await repo.query_readings(
        (t0 - timedelta(minutes=1)).isoformat(), now_utc().isoformat(), limit=10
    )

    assert [r.value for r in rows] == [0.0, 1.0, 2.0]
    assert [r.source for r in rows] == ["pull", "notification", "mqtt"]
    assert rows[0].unit == "lux"


@pytest.mark.asyncio
async def test_query_filters_by_sensor_and_limit(repo):
    t0 = now_utc() - timedelta(minutes=1)
    for i in range(4):
        await repo.insert_reading(Reading(ts_utc=t0 + timedelta(seconds=i), sensor_id="porch", value=float(i)))
    await repo.insert_reading(Reading(ts_utc=t0, sensor_id="attic", value=99.0))

    start, end = (t0 - timedelta(minutes=1)).isoformat(), now_utc().isoformat()

    porch = await repo.query_readings(start, end, limit=2, sensor_id="porch")
    assert [r.value for r in porch] == [2.0, 3.0]

    attic = await repo.query_readings(start, end, limit=10, sensor_id="attic")
    assert [r.value for r in attic] == [99.0]
