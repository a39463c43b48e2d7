from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SumRequest(BaseModel):
    # Strict: "2", 2.0 and true are not integers.
    model_config = ConfigDict(strict=True)

    a: int
    b: int


class SumResponse(BaseModel):
    result: int
