"""Base model for backend wire payloads (camelCase JSON, snake_case Python)."""

import logging

from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class WireModel(BaseModel):
    """
    Accepts camelCase keys from the backend and snake_case keys from Python
    callers. Numeric identifiers are coerced to strings so ids compare
    consistently regardless of how the backend serializes them.
    """

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "coerce_numbers_to_str": True,
        "extra": "ignore",
    }

    def to_wire(self, **kwargs) -> dict:
        """Dump as camelCase JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)

    @classmethod
    def validate_rows(cls, rows: list, source: str) -> list:
        """
        Parse a backend list row by row.

        A row that does not fit the model is skipped with a warning, so one
        unexpected record does not hide the rest of the list.
        """
        items = []
        for index, row in enumerate(rows):
            try:
                items.append(cls.model_validate(row))
            except ValidationError as e:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning(
                    f"Skipping {cls.__name__} row {index} (id={row_id}) from {source}: "
                    f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}"
                )
        return items
