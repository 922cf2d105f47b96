"""Goal Store. Goals are added and removed, never edited."""

import structlog

from fintrack.models.ledger import Goal
from fintrack.models.profile import ProfileContext, RecordKey
from fintrack.stores.base import ListRecordStore

logger = structlog.get_logger("fintrack.stores.goals")


class GoalStore(ListRecordStore):
    record = RecordKey.GOALS

    async def list(self, profile: ProfileContext) -> list[Goal]:
        raw = await self._read_raw_list(profile)
        return self._parse_entries(profile, raw, Goal)

    async def get(self, profile: ProfileContext, goal_id: str):
        for goal in await self.list(profile):
            if goal.id == goal_id:
                return goal
        return None

    async def add(self, profile: ProfileContext, goal: Goal) -> None:
        raw = await self._read_list_for_write(profile)
        raw.append(goal.to_record())
        await self._write(profile, raw)

    async def remove(self, profile: ProfileContext, goal_id: str) -> bool:
        """Drop a goal; unknown ids are ignored. Parked entries keep their goalId."""
        raw = await self._read_list_for_write(profile)
        kept = [
            item for item in raw
            if not (isinstance(item, dict) and item.get("id") == goal_id)
        ]
        if len(kept) == len(raw):
            logger.debug("goal_remove_skipped", profile=profile.label, goal_id=goal_id)
            return False
        await self._write(profile, kept)
        return True

    async def clear(self, profile: ProfileContext) -> None:
        await self._remove(profile)
