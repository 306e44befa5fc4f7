from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class TableRef(BaseModel):
    schema_name: Optional[str] = None
    table_name: str

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def full_name(self) -> str:
        if self.schema_name:
            return f"[{self.schema_name}].[{self.table_name}]"
        return f"[{self.table_name}]"

    @property
    def key(self) -> str:
        return f"{self.schema_name or ''}.{self.table_name}".lower()
