from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from clinic.domain.entities.appointment import parse_timestamp


class BlogStatus(str, Enum):
    draft = "draft"
    published = "published"


@dataclass(frozen=True)
class BlogPost:
    id: str
    title: str
    slug: str
    content: str
    status: BlogStatus
    author: str
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def from_row(row: dict[str, Any]) -> "BlogPost":
        created_at = parse_timestamp(row["created_at"])
        return BlogPost(
            id=str(row["id"]),
            title=str(row.get("title") or ""),
            slug=str(row.get("slug") or ""),
            content=str(row.get("content") or ""),
            status=BlogStatus(row.get("status") or BlogStatus.draft.value),
            author=str(row.get("author") or ""),
            created_at=created_at,
            updated_at=parse_timestamp(row["updated_at"]) if row.get("updated_at") else created_at,
        )
