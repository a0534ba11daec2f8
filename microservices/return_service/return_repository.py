"""
Return Repository

Data access layer for return requests using PostgresClientWrapper.
Matches schema: storefront.return_requests
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import asyncpg

from core.config import InfraConfig
from core.postgres_client import PostgresClientWrapper

from .models import ACTIVE_RETURN_STATUSES, ReturnFilter, ReturnRequest, ReturnStatus, ReturnTrackingEvent
from .protocols import DuplicateReturnError

logger = logging.getLogger(__name__)

RETURN_COLUMNS = list(ReturnRequest.model_fields)


def _to_db(column: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if column == "tracking_events":
        return json.dumps([
            e.model_dump(mode="json") if isinstance(e, ReturnTrackingEvent) else e
            for e in (value or [])
        ])
    return value


class ReturnRepository:
    """
    Repository for return request data operations

    The partial unique index on (order_id, order_item_id) for active
    statuses backs the one-active-return rule.
    """

    def __init__(
        self,
        db: Optional[PostgresClientWrapper] = None,
        config: Optional[InfraConfig] = None,
    ):
        """Initialize Return Repository with PostgresClientWrapper"""
        self.db = db or PostgresClientWrapper("return_service", config=config)
        self.schema = self.db.schema
        self.returns_table = "return_requests"

        logger.info("ReturnRepository initialized with PostgresClient")

    @property
    def _table(self) -> str:
        return f"{self.schema}.{self.returns_table}"

    async def create_return(self, return_request: ReturnRequest) -> ReturnRequest:
        data = return_request.model_dump()
        placeholders = [
            f"${i}::jsonb" if col == "tracking_events" else f"${i}"
            for i, col in enumerate(RETURN_COLUMNS, start=1)
        ]
        query = (
            f"INSERT INTO {self._table} ({', '.join(RETURN_COLUMNS)}) "
            f"VALUES ({', '.join(placeholders)}) RETURNING *"
        )
        try:
            row = await self.db.query_row(query, [_to_db(col, data[col]) for col in RETURN_COLUMNS])
        except asyncpg.UniqueViolationError:
            raise DuplicateReturnError("Return request already exists for this item")
        return self._row_to_return(row)

    async def get_return(self, return_id: str) -> Optional[ReturnRequest]:
        row = await self.db.query_row(f"SELECT * FROM {self._table} WHERE return_id = $1", [return_id])
        return self._row_to_return(row) if row else None

    async def get_return_by_tracking_number(self, tracking_number: str) -> Optional[ReturnRequest]:
        row = await self.db.query_row(
            f"SELECT * FROM {self._table} WHERE tracking_number = $1 ORDER BY requested_at DESC LIMIT 1",
            [tracking_number],
        )
        return self._row_to_return(row) if row else None

    async def find_active_return(self, order_id: str, order_item_id: str) -> Optional[ReturnRequest]:
        row = await self.db.query_row(
            f"SELECT * FROM {self._table} "
            f"WHERE order_id = $1 AND order_item_id = $2 AND status = ANY($3::text[]) LIMIT 1",
            [order_id, order_item_id, [s.value for s in ACTIVE_RETURN_STATUSES]],
        )
        return self._row_to_return(row) if row else None

    async def list_returns(self, filter_params: ReturnFilter) -> List[ReturnRequest]:
        conditions = []
        params: List[Any] = []

        if filter_params.status:
            params.append(filter_params.status.value)
            conditions.append(f"status = ${len(params)}")
        if filter_params.order_id:
            params.append(filter_params.order_id)
            conditions.append(f"order_id = ${len(params)}")
        if filter_params.requested_by:
            params.append(filter_params.requested_by)
            conditions.append(f"requested_by = ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([filter_params.limit, filter_params.offset])
        rows = await self.db.query(
            f"SELECT * FROM {self._table} {where} "
            f"ORDER BY requested_at DESC LIMIT ${len(params) - 1} OFFSET ${len(params)}",
            params,
        )
        return [self._row_to_return(row) for row in rows]

    async def update_return_fields(
        self,
        return_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[ReturnStatus] = None,
    ) -> Optional[ReturnRequest]:
        """
        Update only the given columns.

        With expected_status the row is only written while it still holds
        that status; None comes back when the return is missing or has moved on.
        """
        if not fields:
            return await self.get_return(return_id)

        assignments = []
        params: List[Any] = []
        for col, value in fields.items():
            params.append(_to_db(col, value))
            cast = "::jsonb" if col == "tracking_events" else ""
            assignments.append(f"{col} = ${len(params)}{cast}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")
        params.append(return_id)
        where = f"return_id = ${len(params)}"
        if expected_status is not None:
            params.append(expected_status.value)
            where += f" AND status = ${len(params)}"

        row = await self.db.query_row(
            f"UPDATE {self._table} SET {', '.join(assignments)} WHERE {where} RETURNING *",
            params,
        )
        return self._row_to_return(row) if row else None

    async def append_tracking_events(self, return_id: str, events: List[ReturnTrackingEvent]) -> Optional[ReturnRequest]:
        row = await self.db.query_row(
            f"UPDATE {self._table} "
            f"SET tracking_events = COALESCE(tracking_events, '[]'::jsonb) || $1::jsonb, updated_at = $2 "
            f"WHERE return_id = $3 RETURNING *",
            [_to_db("tracking_events", events), datetime.now(timezone.utc), return_id],
        )
        return self._row_to_return(row) if row else None

    def _row_to_return(self, row: Dict[str, Any]) -> ReturnRequest:
        data = dict(row)
        events = data.get("tracking_events")
        if isinstance(events, str):
            data["tracking_events"] = json.loads(events)
        elif events is None:
            data["tracking_events"] = []
        return ReturnRequest(**data)
