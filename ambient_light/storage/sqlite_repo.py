from __future__ import annotations
import aiosqlite
from datetime import datetime
from typing import List, Optional
from ..domain.models import Reading


class SQLiteRepository:
    def __init__(self, path: str) -> None:
        self._path = path

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS readings (
                    ts_utc TEXT NOT NULL,
                    sensor_id TEXT NOT NULL,
                    value REAL NOT NULL,
                    unit TEXT NOT NULL,
                    source TEXT NOT NULL
                )
                """
            )
            await db.execute("CREATE INDEX IF NOT EXISTS idx_readings_ts ON readings(ts_utc)")
            await db.commit()

    async def insert_reading(self, r: Reading) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                "INSERT INTO readings(ts_utc,sensor_id,value,unit,source) VALUES (?,?,?,?,?)",
                (r.ts_utc.isoformat(), r.sensor_id, float(r.value), r.unit, r.source),
            )
            await db.commit()

    async def query_readings(
        self,
        start_ts: str,
        end_ts: str,
        limit: int,
        sensor_id: Optional[str] = None,
    ) -> List[Reading]:
        sql = """
            SELECT ts_utc,sensor_id,value,unit,source
            FROM readings
            WHERE ts_utc >= ? AND ts_utc <= ?
        """
        params: list = [start_ts, end_ts]
        if sensor_id is not None:
            sql += " AND sensor_id = ?"
            params.append(sensor_id)
        sql += " ORDER BY ts_utc DESC LIMIT ?"
        params.append(limit)

        async with aiosqlite.connect(self._path) as db:
            cur = await db.execute(sql, params)
            rows = await cur.fetchall()
        out: list[Reading] = []
        for ts, sid, val, unit, source in rows:
            out.append(
                Reading(
                    ts_utc=datetime.fromisoformat(ts),
                    sensor_id=sid,
                    value=float(val),
                    unit=unit,
                    source=source,
                )
            )
        return list(reversed(out))
