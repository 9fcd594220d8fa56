# Copyright (c) 2025 Artoo Corporation
# Licensed under the Business Source License 1.1 (see LICENSE).
# Change Date: 2029-09-08  •  Change License: LGPL-3.0-or-later

import asyncio
import json
import logging
from typing import Optional

from pydantic import BaseModel, Field

from response_guard import ValidationFailure, validate_response

# Basic logging setup
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')


class Cat(BaseModel):
    id: int
    name: str = Field(min_length=1)
    age: Optional[int] = Field(default=None, ge=0)


# A pretend data source; row 3 is corrupt
ROWS = {
    1: {"id": 1, "name": "Tom", "age": 4},
    2: {"id": 2, "name": "Felix"},
    3: {"id": "three", "name": "", "age": -1},
}


class CatService:
    """Service layer whose return values are checked before reaching the API."""

    # 1. Default: raises ValidationFailure on a broken contract
    @validate_response(Cat)
    async def find_one(self, cat_id: int):
        await asyncio.sleep(0.01)
        return ROWS.get(cat_id)

    @validate_response(Cat)
    async def find_all(self):
        await asyncio.sleep(0.01)
        return list(ROWS.values())

    # 2. Report instead of raising: hand the error body back to the caller
    @validate_response(Cat, on_failure=lambda failure: failure.to_dict())
    async def find_all_reported(self):
        return list(ROWS.values())

    # 3. Strict pydantic mode: "2" is no longer accepted for an int
    @validate_response(Cat, {"strict": True})
    async def find_loose(self):
        return {"id": "2", "name": "Felix"}


async def main():
    service = CatService()

    print("--- single valid result ---")
    print("find_one(1) =>", await service.find_one(1))

    print("--- missing row passes straight through ---")
    print("find_one(42) =>", await service.find_one(42))

    print("--- collection with a corrupt row (expect ValidationFailure) ---")
    try:
        await service.find_all()
        print("  [!] DEMO FAILED: find_all() should have raised")
    except ValidationFailure as failure:
        print(failure)

    print("--- on_failure handler returns the error body ---")
    print(json.dumps(await service.find_all_reported(), indent=2, default=str))

    print("--- strict option ---")
    try:
        await service.find_loose()
    except ValidationFailure as failure:
        print("  -> strict mode rejected:", failure.violations[0][0].property)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    asyncio.run(main())
