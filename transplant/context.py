"""Per-call transplant state: cursor, resolved team identities and cached column lists.

One ``TransplantContext`` lives for exactly one transplant call. Nothing here is module-level
or shared between calls.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from league_repo import SaveDatabase
from schema import guid_to_blob
from transplant.plan import TransplantPlan

logger = logging.getLogger(__name__)

# Override value: (sql expression, params bound in that expression)
Override = Tuple[str, Tuple[object, ...]]


@dataclass
class TransplantContext:
    db: SaveDatabase
    cur: sqlite3.Cursor
    plan: TransplantPlan
    src: str
    target_guid: bytes
    source_guid: bytes
    target_team_local_id: int
    source_team_local_id: int
    source_team_name: str
    _columns: Dict[Tuple[str, str], List[str]] = field(default_factory=dict, repr=False)
    _rowid_alias: Dict[Tuple[str, str], Optional[str]] = field(default_factory=dict, repr=False)

    @classmethod
    def open(cls, db: SaveDatabase, cur: sqlite3.Cursor, plan: TransplantPlan, *, src: str = "src") -> "TransplantContext":
        """Resolve both teams (target in main, donor in ``src``); NotFoundError if either is missing."""
        target = db.get_team(plan.keep_identity)
        source = db.get_team(plan.donate_content_from, schema=src)
        return cls(
            db=db,
            cur=cur,
            plan=plan,
            src=src,
            target_guid=guid_to_blob(target.guid),
            source_guid=guid_to_blob(source.guid),
            target_team_local_id=db.get_team_local_id(target.guid),
            source_team_local_id=db.get_team_local_id(source.guid, schema=src),
            source_team_name=source.name,
        )

    # ------------------------
    # Schema lookups (cached for this call)
    # ------------------------

    def _load_table_info(self, table: str, schema: str) -> None:
        rows = self.cur.execute(f"PRAGMA {schema}.table_info({table});").fetchall()
        self._columns[(schema, table)] = [r["name"] for r in rows]
        pk = [r for r in rows if r["pk"]]
        alias = None
        if len(pk) == 1 and str(pk[0]["type"] or "").upper() == "INTEGER":
            alias = pk[0]["name"]
        self._rowid_alias[(schema, table)] = alias

    def columns(self, table: str, schema: str = "main") -> List[str]:
        if (schema, table) not in self._columns:
            self._load_table_info(table, schema)
        return self._columns[(schema, table)]

    def has_table(self, table: str, schema: str = "main") -> bool:
        return bool(self.columns(table, schema))

    def rowid_alias(self, table: str, schema: str = "main") -> Optional[str]:
        """The INTEGER PRIMARY KEY column, if any. Those values are file-local and never copied."""
        self.columns(table, schema)
        return self._rowid_alias[(schema, table)]

    def shared_columns(self, table: str) -> List[str]:
        """Columns present in both main and source (main order), minus the rowid alias."""
        src_cols = set(self.columns(table, self.src))
        skip = self.rowid_alias(table, "main")
        return [c for c in self.columns(table, "main") if c in src_cols and c != skip]

    # ------------------------
    # Statements
    # ------------------------

    def execute(self, sql: str, params: Sequence[object] = ()) -> int:
        self.cur.execute(sql, tuple(params))
        return max(self.cur.rowcount, 0)

    def copy_rows(
        self,
        table: str,
        *,
        from_sql: str,
        where_sql: str,
        where_params: Sequence[object] = (),
        overrides: Optional[Mapping[str, Override]] = None,
        verb: str = "INSERT OR REPLACE",
        order_sql: Optional[str] = None,
    ) -> int:
        """Copy source rows of ``table`` into main.

        ``from_sql`` must alias the source table as ``s``. Columns in ``overrides`` take the
        given expression instead of ``s.<column>``. ``order_sql`` fixes the insertion order.
        """
        if not self.has_table(table, "main") or not self.has_table(table, self.src):
            logger.info("[TRANSPLANT_TABLE_SKIPPED] table=%s (missing in main or source)", table)
            return 0

        overrides = overrides or {}
        cols = self.shared_columns(table)
        for col in overrides:
            if col not in cols and col in self.columns(table, "main"):
                cols.append(col)

        select_exprs: List[str] = []
        params: List[object] = []
        for col in cols:
            if col in overrides:
                expr, expr_params = overrides[col]
                select_exprs.append(expr)
                params.extend(expr_params)
            else:
                select_exprs.append(f's."{col}"')
        params.extend(where_params)

        col_sql = ", ".join(f'"{c}"' for c in cols)
        sql = (
            f"{verb} INTO main.{table} ({col_sql}) "
            f"SELECT {', '.join(select_exprs)} FROM {from_sql} WHERE {where_sql}"
            + (f" ORDER BY {order_sql};" if order_sql else ";")
        )
        n = self.execute(sql, params)
        logger.debug("[TRANSPLANT_COPY] table=%s rows=%d", table, n)
        return n

    # ------------------------
    # Roster selectors
    # ------------------------

    @property
    def target_roster_guids_sql(self) -> str:
        return "SELECT GUID FROM main.t_baseball_players WHERE teamGUID = ?"

    @property
    def target_roster_local_ids_sql(self) -> str:
        return (
            "SELECT lid.localID FROM main.t_baseball_player_local_ids lid "
            "JOIN main.t_baseball_players p ON p.GUID = lid.GUID WHERE p.teamGUID = ?"
        )

    @property
    def source_roster_guids_sql(self) -> str:
        return f"SELECT GUID FROM {self.src}.t_baseball_players WHERE teamGUID = ?"

