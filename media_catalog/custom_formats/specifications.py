from __future__ import annotations

import re
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..meta_keys import SIZE
from ..models import ParsedReleaseInfo, QualityType

GIGABYTE = 1024**3


class BaseSpecification(BaseModel):
    """One atomic rule of a custom format.

    ``negate`` inverts the outcome of the rule itself; it never changes how
    the rules of a format are combined.
    """

    name: str = ""
    negate: bool = False

    def is_satisfied_by(self, info: ParsedReleaseInfo) -> bool:
        result = self._matches(info)
        return not result if self.negate else result

    def _matches(self, info: ParsedReleaseInfo) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError

    def label(self) -> str:
        return self.name or type(self).__name__


class _PatternSpecification(BaseSpecification):
    pattern: str

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid pattern {value!r}: {exc}") from exc
        return value

    def _search(self, value: Optional[str]) -> bool:
        if not value:
            return False
        return re.search(self.pattern, value, re.IGNORECASE) is not None


class SizeSpecification(BaseSpecification):
    kind: Literal["size"] = "size"
    min_gb: float = 0.0
    max_gb: Optional[float] = None

    def _matches(self, info: ParsedReleaseInfo) -> bool:
        try:
            size = int(info.extra_info.get(SIZE) or 0)
        except (TypeError, ValueError):
            size = 0
        size_gb = size / GIGABYTE
        if size_gb <= self.min_gb:
            return False
        return self.max_gb is None or size_gb <= self.max_gb


class ReleaseGroupSpecification(_PatternSpecification):
    kind: Literal["release_group"] = "release_group"

    def _matches(self, info: ParsedReleaseInfo) -> bool:
        return self._search(info.release_group)


class ReleaseTitleSpecification(_PatternSpecification):
    kind: Literal["release_title"] = "release_title"

    def _matches(self, info: ParsedReleaseInfo) -> bool:
        return self._search(info.release_title)


class QualitySpecification(BaseSpecification):
    kind: Literal["quality"] = "quality"
    qualities: List[QualityType] = Field(default_factory=list)

    def _matches(self, info: ParsedReleaseInfo) -> bool:
        return info.quality.quality_type in self.qualities


class ProperSpecification(BaseSpecification):
    kind: Literal["proper"] = "proper"
    value: bool = True

    def _matches(self, info: ParsedReleaseInfo) -> bool:
        return info.quality.proper == self.value


Specification = Annotated[
    Union[
        SizeSpecification,
        ReleaseGroupSpecification,
        ReleaseTitleSpecification,
        QualitySpecification,
        ProperSpecification,
    ],
    Field(discriminator="kind"),
]
