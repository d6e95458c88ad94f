from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.models.lot_template import LotTemplate
from src.domain.value_objects.custom_field import CustomFieldDefinition, CustomFieldType


class CustomFieldSchema(BaseModel):
    key: str = Field(min_length=1)
    label: str = Field(min_length=1)
    type: CustomFieldType = CustomFieldType.TEXT
    required: bool = False
    options: list[str] = Field(default_factory=list)

    def to_domain(self) -> CustomFieldDefinition:
        return CustomFieldDefinition(
            key=self.key.strip(),
            label=self.label.strip(),
            type=self.type,
            required=self.required,
            options=tuple(self.options),
        )


class LotTemplateUpdate(BaseModel):
    custom_fields: list[CustomFieldSchema] = Field(default_factory=list)


class LotTemplateResponse(BaseModel):
    custom_fields: list[CustomFieldSchema]
    updated_at: datetime

    @classmethod
    def from_domain(cls, template: LotTemplate) -> LotTemplateResponse:
        return cls(
            custom_fields=[
                CustomFieldSchema(
                    key=f.key,
                    label=f.label,
                    type=f.type,
                    required=f.required,
                    options=list(f.options),
                )
                for f in template.custom_fields
            ],
            updated_at=template.updated_at,
        )
