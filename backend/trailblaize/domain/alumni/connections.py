"""Mutual-connection computation over accepted connection edges."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Iterable, Sequence

from trailblaize.domain.alumni.models import Connection, MutualConnection, ProfileSummary
from trailblaize.domain.alumni.store import AlumniStore
from trailblaize.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


def adjacency(edges: Iterable[Connection]) -> dict[str, set[str]]:
	"""Undirected neighbour sets keyed by user id."""

	graph: dict[str, set[str]] = defaultdict(set)
	for edge in edges:
		if edge.requester_id == edge.recipient_id:
			continue
		graph[edge.requester_id].add(edge.recipient_id)
		graph[edge.recipient_id].add(edge.requester_id)
	return graph


def mutual_ids(graph: dict[str, set[str]], user_id: str, other_id: str) -> set[str]:
	shared = graph.get(user_id, set()) & graph.get(other_id, set())
	shared.discard(user_id)
	shared.discard(other_id)
	return shared


def _to_mutuals(ids: Iterable[str], profiles: dict[str, ProfileSummary]) -> list[MutualConnection]:
	items = [
		MutualConnection(id=pid, name=profiles[pid].display_name, avatar=profiles[pid].avatar_url)
		for pid in ids
		if pid in profiles
	]
	items.sort(key=lambda item: (item.name.casefold(), item.id))
	return items


async def _edges_or_empty(store: AlumniStore, user_ids: Sequence[str], branch: str) -> list[Connection]:
	try:
		return await store.accepted_connections(user_ids)
	except Exception:
		logger.warning("mutuals.fanout_failed branch=%s", branch, exc_info=True)
		obs_metrics.inc_mutual_fanout_failure(branch)
		return []


async def mutuals_for_viewer(
	store: AlumniStore,
	viewer_id: str,
	alumni_user_ids: Sequence[str],
) -> dict[str, list[MutualConnection]]:
	"""Return mutual connections between the viewer and each alumnus user id.

	The viewer's edges and the alumni edges are loaded concurrently; a failed
	branch counts as having no edges. Names and avatars come from a single
	batched profile lookup.
	"""

	candidates = [uid for uid in dict.fromkeys(alumni_user_ids) if uid and uid != viewer_id]
	if not candidates:
		return {}
	viewer_edges, candidate_edges = await asyncio.gather(
		_edges_or_empty(store, [viewer_id], "viewer"),
		_edges_or_empty(store, candidates, "alumni"),
	)
	viewer_friends = adjacency(viewer_edges).get(viewer_id, set())
	if not viewer_friends:
		return {}
	graph = adjacency(candidate_edges)
	shared: dict[str, set[str]] = {}
	for uid in candidates:
		ids = (graph.get(uid, set()) & viewer_friends) - {viewer_id, uid}
		if ids:
			shared[uid] = ids
	if not shared:
		return {}
	wanted = sorted(set().union(*shared.values()))
	profiles = {profile.id: profile for profile in await store.profile_summaries(wanted)}
	return {uid: _to_mutuals(ids, profiles) for uid, ids in shared.items()}


async def mutuals_between(store: AlumniStore, user_id: str, target_id: str) -> list[MutualConnection]:
	edges = await store.accepted_connections([user_id, target_id])
	ids = mutual_ids(adjacency(edges), user_id, target_id)
	if not ids:
		return []
	profiles = {profile.id: profile for profile in await store.profile_summaries(sorted(ids))}
	return _to_mutuals(ids, profiles)
