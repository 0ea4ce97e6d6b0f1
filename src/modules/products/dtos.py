"""Product DTOs exchanged with the order workflow.

``StockUpdateDTO`` describes one absolute stock overwrite.  When
``expected_quantity`` is set the write is conditional: it only applies
if the stored stock still equals the value read during validation.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator


class StockUpdateDTO(BaseModel):
    """Immutable DTO for a single stock overwrite."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    expected_quantity: Optional[int] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock quantity cannot be negative.")
        return v
