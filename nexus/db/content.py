"""Config, stats and content collections kept as JSON documents."""
import json
from typing import Any, Optional

from nexus.errors import UpdateConflict
from .kv import KeyValueStore


SYSTEM_CONFIG_KEY = "system_config"
SITE_CONFIG_KEY = "site_config"
STATS_KEY = "site_stats"

COLLECTIONS = ("tracks", "videos", "articles", "gallery", "categories", "playlists")

DEFAULT_SITE_CONFIG = {
    "navLabels": {
        "home": "主控台",
        "video": "影视中心",
        "music": "精选音乐",
        "article": "深度专栏",
        "gallery": "视觉画廊",
        "dashboard": "工坊",
    }
}

# stat event type -> (counter field, per-item detail field)
STAT_EVENTS = {
    "visit": ("visits", None),
    "music_play": ("musicPlays", "trackPlays"),
    "video_play": ("videoPlays", "videoPlayDetails"),
    "article_view": ("articleViews", "articleViewDetails"),
}


def empty_stats() -> dict:
    return {
        "visits": 0,
        "musicPlays": 0,
        "videoPlays": 0,
        "articleViews": 0,
        "trackPlays": {},
        "videoPlayDetails": {},
        "articleViewDetails": {},
    }


class ContentStore:
    """Thin JSON layer over the key-value store for non-user documents."""

    def __init__(self, kv: KeyValueStore, max_retries: int = 5):
        self.kv = kv
        self.max_retries = max_retries

    async def _get_json(self, key: str, default: Any) -> Any:
        raw = await self.kv.get(key)
        return json.loads(raw) if raw else default

    async def get_system_config(self) -> dict:
        return await self._get_json(SYSTEM_CONFIG_KEY, {})

    async def merge_system_config(self, updates: dict) -> dict:
        """Merge `updates` into the stored config, keeping unrelated fields."""
        for _ in range(self.max_retries):
            entry = await self.kv.get_versioned(SYSTEM_CONFIG_KEY)
            current = json.loads(entry.value) if entry else {}
            merged = {**current, **updates}
            version = entry.version if entry else None
            if await self.kv.put_if_version(SYSTEM_CONFIG_KEY, json.dumps(merged), version):
                return merged
        raise UpdateConflict()

    async def get_site_config(self) -> dict:
        return await self._get_json(SITE_CONFIG_KEY, DEFAULT_SITE_CONFIG)

    async def set_site_config(self, config: dict) -> None:
        await self.kv.put(SITE_CONFIG_KEY, json.dumps(config))

    async def get_collection(self, name: str) -> Any:
        return await self._get_json(name, [])

    async def set_collection(self, name: str, data: Any) -> None:
        await self.kv.put(name, json.dumps(data))

    async def get_stats(self) -> dict:
        return await self._get_json(STATS_KEY, empty_stats())

    async def record_stat(self, event_type: str, item_id: Optional[str] = None) -> dict:
        """Increment the counter for `event_type`; unknown types are a no-op write."""
        counter, detail = STAT_EVENTS.get(event_type, (None, None))
        for _ in range(self.max_retries):
            entry = await self.kv.get_versioned(STATS_KEY)
            stats = json.loads(entry.value) if entry else empty_stats()
            if counter:
                stats[counter] = stats.get(counter, 0) + 1
            if detail and item_id:
                details = stats.setdefault(detail, {})
                details[item_id] = details.get(item_id, 0) + 1
            version = entry.version if entry else None
            if await self.kv.put_if_version(STATS_KEY, json.dumps(stats), version):
                return stats
        raise UpdateConflict()
