# memory/knowledge_repo.py
from __future__ import annotations

import sqlite3
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

_COLUMNS = "id, fact, source, confidence, embedding, created_at, updated_at"
_COLUMNS_NO_EMBEDDING = "id, fact, source, confidence, NULL AS embedding, created_at, updated_at"


class KnowledgeRepo:
    """
    Rows of the ``knowledge`` table plus the category link table.

    Plain SQL only: rows come back as dicts, missing rows as ``None`` or an
    affected-row count of zero. Error classification happens one level up.
      knowledge(id, fact UNIQUE, source, confidence, embedding BLOB, created_at, updated_at)
    """

    def __init__(self, db: Any, clock: Callable[[], float] = time.time):
        if not hasattr(db, "conn"):
            raise ValueError("KnowledgeRepo expects db.conn")
        self.db = db
        self._clock = clock
        self._table = "knowledge"

    def _conn(self):
        if self.db.conn is None:
            raise sqlite3.ProgrammingError("Database is not connected")
        return self.db.conn

    # --------- writes ---------

    async def upsert(
        self,
        fact: str,
        source: Optional[str],
        confidence: float,
        embedding: Optional[bytes] = None,
        *,
        write_embedding: bool = False,
    ) -> int:
        """Insert or update by fact text; the UNIQUE(fact) index arbitrates races."""
        conn = self._conn()
        now = self._clock()
        # an omitted source keeps the stored provenance
        update = (
            "source=COALESCE(excluded.source, source), "
            "confidence=excluded.confidence, updated_at=excluded.updated_at"
        )
        if write_embedding:
            update += ", embedding=excluded.embedding"
        await conn.execute(
            f"""INSERT INTO {self._table}(fact, source, confidence, embedding, created_at, updated_at)
                VALUES(?,?,?,?,?,?)
                ON CONFLICT(fact) DO UPDATE SET {update}""",
            (fact, source, confidence, embedding if write_embedding else None, now, now),
        )
        cur = await conn.execute(f"SELECT id FROM {self._table} WHERE fact=?", (fact,))
        row = await cur.fetchone()
        await cur.close()
        await conn.commit()
        if row is None:
            raise sqlite3.DatabaseError("upserted fact row vanished before commit")
        return int(row[0])

    async def set_embedding(self, fact_id: int, embedding: bytes) -> int:
        conn = self._conn()
        cur = await conn.execute(
            f"UPDATE {self._table} SET embedding=?, updated_at=? WHERE id=?",
            (embedding, self._clock(), fact_id),
        )
        count = cur.rowcount
        await cur.close()
        await conn.commit()
        return count

    async def delete(self, fact_id: int) -> int:
        conn = self._conn()
        cur = await conn.execute(f"DELETE FROM {self._table} WHERE id=?", (fact_id,))
        count = cur.rowcount
        await cur.close()
        await conn.commit()
        return count

    async def attach_categories(self, fact_id: int, names: Iterable[str]) -> bool:
        conn = self._conn()
        if not await self._exists(fact_id):
            return False
        cleaned = sorted({(n or "").strip() for n in names} - {""})
        for name in cleaned:
            await conn.execute(
                "INSERT INTO categories(name) VALUES(?) ON CONFLICT(name) DO NOTHING",
                (name,),
            )
            await conn.execute(
                """INSERT OR IGNORE INTO knowledge_categories(category_id, fact_id)
                   SELECT id, ? FROM categories WHERE name=?""",
                (fact_id, name),
            )
        await conn.execute(
            f"UPDATE {self._table} SET updated_at=? WHERE id=?", (self._clock(), fact_id)
        )
        await conn.commit()
        return True

    # --------- reads ---------

    async def _exists(self, fact_id: int) -> bool:
        cur = await self._conn().execute(f"SELECT 1 FROM {self._table} WHERE id=?", (fact_id,))
        row = await cur.fetchone()
        await cur.close()
        return row is not None

    async def fetch_one(self, fact_id: int) -> Optional[Dict]:
        cur = await self._conn().execute(
            f"SELECT {_COLUMNS} FROM {self._table} WHERE id=?", (fact_id,)
        )
        row = await cur.fetchone()
        await cur.close()
        if row is None:
            return None
        out = dict(row)
        out["categories"] = (await self.categories_for([fact_id])).get(fact_id, ())
        return out

    async def fetch_all(self, include_embeddings: bool = False) -> List[Dict]:
        cols = _COLUMNS if include_embeddings else _COLUMNS_NO_EMBEDDING
        cur = await self._conn().execute(
            f"SELECT {cols} FROM {self._table} ORDER BY updated_at DESC, id DESC"
        )
        rows = await cur.fetchall()
        await cur.close()
        return await self._with_categories(rows)

    async def fetch_embedded(self) -> List[Dict]:
        cur = await self._conn().execute(
            f"SELECT {_COLUMNS} FROM {self._table} WHERE embedding IS NOT NULL ORDER BY id"
        )
        rows = await cur.fetchall()
        await cur.close()
        return await self._with_categories(rows)

    async def categories_for(self, fact_ids: Optional[List[int]] = None) -> Dict[int, tuple]:
        sql = """SELECT kc.fact_id, c.name
                 FROM knowledge_categories kc
                 JOIN categories c ON c.id = kc.category_id"""
        params: tuple = ()
        if fact_ids is not None:
            if not fact_ids:
                return {}
            sql += f" WHERE kc.fact_id IN ({','.join('?' * len(fact_ids))})"
            params = tuple(fact_ids)
        cur = await self._conn().execute(sql + " ORDER BY c.name", params)
        rows = await cur.fetchall()
        await cur.close()
        out: Dict[int, list] = {}
        for r in rows:
            out.setdefault(r[0], []).append(r[1])
        return {k: tuple(v) for k, v in out.items()}

    async def _with_categories(self, rows) -> List[Dict]:
        if not rows:
            return []
        cats = await self.categories_for()
        result = []
        for r in rows:
            d = dict(r)
            d["categories"] = cats.get(d["id"], ())
            result.append(d)
        return result
