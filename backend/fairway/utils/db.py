from collections.abc import Mapping
from typing import Any

from databases import Database
from pydantic import BaseModel
from sqlalchemy.sql import Select


def row_to_dict(row: Any) -> dict[str, Any]:
    mapping = getattr(row, "_mapping", row)
    assert isinstance(mapping, Mapping)
    return dict(mapping)


async def fetch_one_parsed[BaseModelT: BaseModel](
    database: Database, model: type[BaseModelT], query: Select | str, values: dict | None = None
) -> BaseModelT | None:
    record = await database.fetch_one(query, values)
    return model.model_validate(row_to_dict(record)) if record is not None else None


async def fetch_all_parsed[BaseModelT: BaseModel](
    database: Database, model: type[BaseModelT], query: Select | str, values: dict | None = None
) -> list[BaseModelT]:
    records = await database.fetch_all(query, values)
    return [model.model_validate(row_to_dict(record)) for record in records]
