# yieldpilot/adapters/repos/flags.py
from __future__ import annotations

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ...models import FeatureFlag, utcnow


class FeatureFlagRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, key: str) -> FeatureFlag | None:
        q = select(FeatureFlag).where(FeatureFlag.key == key)
        return (await self.session.execute(q)).scalars().first()

    async def get_value(self, key: str) -> Any:
        """
        Decoded JSON value for `key`, or None when the row is absent/empty.
        Raises json.JSONDecodeError if the stored text isn't valid JSON.
        """
        flag = await self.get(key)
        if flag is None or not flag.value_json:
            return None
        return json.loads(flag.value_json)

    async def set_value(self, key: str, value: Any) -> FeatureFlag:
        flag = await self.get(key)
        if flag is None:
            flag = FeatureFlag(key=key)
            self.session.add(flag)

        flag.value_json = json.dumps(value)
        flag.updated_at = utcnow()
        await self.session.flush()
        return flag
