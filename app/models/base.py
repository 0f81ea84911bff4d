"""
Shared pydantic base for API payloads and stored records.

Rows and JSON bodies use camelCase keys (``clientName``, ``foodId``); Python code
uses snake_case attributes. Dump with ``to_api()`` to get the camelCase form.
"""
from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_api(self, **kwargs: Any) -> Dict[str, Any]:
        """camelCase, JSON-safe dict of this model."""
        return self.model_dump(by_alias=True, mode="json", **kwargs)
