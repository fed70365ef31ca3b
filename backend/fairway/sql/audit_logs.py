import json
from typing import Any

from heliclockter import datetime_utc

from fairway.database import database
from fairway.utils.id_types import AuditLogId, UserId


async def sql_insert_audit_log(
    user_id: UserId | None,
    action: str,
    entity_type: str,
    entity_id: int | str,
    metadata: dict[str, Any] | None = None,
) -> AuditLogId:
    audit_log_id = await database.fetch_val(
        """
        INSERT INTO audit_logs (user_id, action, entity_type, entity_id, metadata, created)
        VALUES (:user_id, :action, :entity_type, :entity_id, CAST(:metadata AS JSONB), :created)
        RETURNING id
        """,
        values={
            "user_id": user_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "metadata": json.dumps(metadata or {}, default=str),
            "created": datetime_utc.now(),
        },
    )
    return AuditLogId(audit_log_id)
