from __future__ import annotations

import json
from datetime import tzinfo

from ..common.datetime_utils import to_org_local
from .model import AuditRecord
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, cur, tz: tzinfo):
        self._cur = cur
        self._tz = tz

    def append(self, record: AuditRecord) -> int:
        self._cur.execute(
            """
            INSERT INTO audit_records(employee_id, kind, action, event_type, similarity, reason, detail, created_at)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                record.employee_id,
                record.kind.value,
                record.action.value,
                record.event_type.value if record.event_type else None,
                round(record.similarity, 4) if record.similarity is not None else None,
                record.reason,
                json.dumps(record.detail, default=str) if record.detail else None,
                to_org_local(record.created_at, self._tz).replace(tzinfo=None),
            ),
        )
        return int(self._cur.lastrowid)
