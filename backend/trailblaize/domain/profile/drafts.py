"""Debounced autosave of in-progress profile edits.

Each profile id has at most one pending save task. A new write cancels the
pending task and schedules a fresh one, so only the last write inside the
debounce window reaches Redis. Drafts expire with the session TTL and are
best effort only.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from trailblaize.infra.redis import redis_client
from trailblaize.obs import metrics as obs_metrics
from trailblaize.settings import settings

logger = logging.getLogger(__name__)

DRAFT_KEY = "profile:draft:{profile_id}"


def _key(profile_id: str) -> str:
	return DRAFT_KEY.format(profile_id=profile_id)


class DraftAutosaver:
	def __init__(
		self,
		*,
		debounce_seconds: Optional[float] = None,
		ttl_seconds: Optional[int] = None,
	) -> None:
		self.debounce_seconds = (
			settings.profile_draft_debounce_seconds if debounce_seconds is None else debounce_seconds
		)
		self.ttl_seconds = settings.profile_draft_ttl_seconds if ttl_seconds is None else ttl_seconds
		self._tasks: dict[str, asyncio.Task[None]] = {}
		self._pending: dict[str, dict[str, Any]] = {}

	def schedule(self, profile_id: str, fields: Mapping[str, Any]) -> None:
		previous = self._tasks.pop(profile_id, None)
		if previous is not None and not previous.done():
			previous.cancel()
			obs_metrics.inc_profile_draft("superseded")
		self._pending[profile_id] = dict(fields)
		task = asyncio.create_task(self._save_later(profile_id))
		self._tasks[profile_id] = task
		task.add_done_callback(lambda t, pid=profile_id: self._forget(pid, t))
		obs_metrics.inc_profile_draft("scheduled")

	def _forget(self, profile_id: str, task: asyncio.Task[None]) -> None:
		if self._tasks.get(profile_id) is task:
			self._tasks.pop(profile_id, None)

	async def _save_later(self, profile_id: str) -> None:
		await asyncio.sleep(self.debounce_seconds)
		fields = self._pending.pop(profile_id, None)
		if fields is None:
			return
		payload = {"fields": fields, "saved_at": datetime.now(timezone.utc).isoformat()}
		try:
			await redis_client.set(_key(profile_id), json.dumps(payload, default=str), ex=self.ttl_seconds)
		except Exception:
			logger.warning("profile.draft_save_failed profile=%s", profile_id[:8], exc_info=True)
			obs_metrics.inc_profile_draft("failed")
			return
		obs_metrics.inc_profile_draft("saved")

	def is_pending(self, profile_id: str) -> bool:
		return profile_id in self._pending

	async def flush(self, profile_id: str) -> None:
		"""Wait for the pending save of ``profile_id`` to complete, if any."""

		task = self._tasks.get(profile_id)
		if task is not None:
			await asyncio.gather(task, return_exceptions=True)

	async def get(self, profile_id: str) -> Optional[dict[str, Any]]:
		pending = self._pending.get(profile_id)
		if pending is not None:
			return {"fields": dict(pending), "saved_at": None, "pending": True}
		raw = await redis_client.get(_key(profile_id))
		if not raw:
			return None
		data = json.loads(raw)
		return {"fields": data.get("fields") or {}, "saved_at": data.get("saved_at"), "pending": False}

	async def discard(self, profile_id: str) -> None:
		task = self._tasks.pop(profile_id, None)
		if task is not None and not task.done():
			task.cancel()
		self._pending.pop(profile_id, None)
		await redis_client.delete(_key(profile_id))
		obs_metrics.inc_profile_draft("discarded")

	async def close(self) -> None:
		tasks = [task for task in self._tasks.values() if not task.done()]
		for task in tasks:
			task.cancel()
		if tasks:
			await asyncio.gather(*tasks, return_exceptions=True)
		self._tasks.clear()
		self._pending.clear()
