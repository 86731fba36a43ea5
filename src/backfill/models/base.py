"""Shared base model definitions for backfill documents."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BackfillBaseModel(BaseModel):
    """Base model configured for project-wide defaults."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


class DocumentModel(BackfillBaseModel):
    """Base for JSON documents shared with other tools, which use camelCase keys."""

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict[str, object]:
        """Dump the model using its camelCase aliases in JSON-compatible form."""

        return self.model_dump(mode="json", by_alias=True)


__all__ = ["BackfillBaseModel", "DocumentModel"]
