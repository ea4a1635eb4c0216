from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter

from .specifications import Specification


class CustomFormat(BaseModel):
    id: Optional[int] = None
    name: str
    specifications: List[Specification] = Field(default_factory=list)

    def specifications_json(self) -> str:
        return _SPECIFICATIONS.dump_json(self.specifications).decode("utf-8")

    @classmethod
    def from_row(cls, format_id: int, name: str, specifications_json: str) -> "CustomFormat":
        specs = _SPECIFICATIONS.validate_json(specifications_json or "[]")
        return cls(id=format_id, name=name, specifications=specs)


_SPECIFICATIONS: TypeAdapter[List[Specification]] = TypeAdapter(List[Specification])
