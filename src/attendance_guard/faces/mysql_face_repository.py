from __future__ import annotations

import json
from datetime import datetime, tzinfo
from typing import Sequence

from ..common.datetime_utils import to_org_local
from ..database.mysql_base import fetchall
from .model import FaceDescriptor, FaceReference
from .repository import FaceReferenceRepository


class MySQLFaceReferenceRepository(FaceReferenceRepository):
    def __init__(self, cur, tz: tzinfo):
        self._cur = cur
        self._tz = tz

    def list_active(self, employee_id: int) -> Sequence[FaceReference]:
        self._cur.execute(
            """
            SELECT reference_id, employee_id, descriptor, is_active, created_at
            FROM face_references
            WHERE employee_id=%s AND is_active=1
            ORDER BY created_at DESC, reference_id DESC
            """,
            (int(employee_id),),
        )
        out: list[FaceReference] = []
        for r in fetchall(self._cur):
            raw = r["descriptor"]
            if isinstance(raw, (bytes, bytearray)):
                raw = raw.decode("utf-8")
            out.append(
                FaceReference(
                    reference_id=int(r["reference_id"]),
                    employee_id=int(r["employee_id"]),
                    descriptor=FaceDescriptor.from_dict(json.loads(raw) if isinstance(raw, str) else raw),
                    is_active=bool(r["is_active"]),
                    created_at=to_org_local(r["created_at"], self._tz) if r.get("created_at") else None,
                )
            )
        return out

    def add(self, employee_id: int, descriptor: FaceDescriptor, *, created_at: datetime) -> int:
        self._cur.execute(
            "INSERT INTO face_references(employee_id, descriptor, is_active, created_at) VALUES(%s,%s,1,%s)",
            (
                int(employee_id),
                json.dumps(descriptor.to_dict()),
                to_org_local(created_at, self._tz).replace(tzinfo=None),
            ),
        )
        return int(self._cur.lastrowid)

    def deactivate_all(self, employee_id: int) -> int:
        self._cur.execute(
            "UPDATE face_references SET is_active=0 WHERE employee_id=%s AND is_active=1",
            (int(employee_id),),
        )
        return int(self._cur.rowcount)
