"""Kind-name resolution with optional lookup in the NIPs repository.

[KindNameResolver][kindscope.explorer.kinds.KindNameResolver] answers
"what is kind N called?" in three steps: the immutable startup table
([KindNames][kindscope.models.kinds.KindNames]), then a per-resolver
[KindNameCache][kindscope.explorer.kinds.KindNameCache] of names found at
runtime, then (only when enabled) a GitHub code search over the NIPs
repository. Every failure degrades to the ``"Kind <n>"`` placeholder; name
resolution never raises.

[KindNameResolver.discover()][kindscope.explorer.kinds.KindNameResolver.discover]
runs the bulk variant used by ``tools/generate_kind_names.py``.

Note:
    GitHub's code search API rejects anonymous requests on most accounts.
    Set the environment variable named by
    [KindLookupConfig.token_env][kindscope.explorer.configs.KindLookupConfig]
    (``GITHUB_TOKEN`` by default) to enable it.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

import aiohttp

from kindscope.core.exceptions import LookupFailedError
from kindscope.core.logger import Logger
from kindscope.models.constants import EVENT_KIND_MAX
from kindscope.models.kinds import is_plausible_kind_name, placeholder_name
from kindscope.utils.http import read_bounded_json


if TYPE_CHECKING:
    from .configs import KindLookupConfig


_KIND_PATTERNS: tuple[re.Pattern[str], ...] = (
    # kind: 30023, Long-form Content
    re.compile(r"kind:\s*(\d+)[^,\n\r]*,\s*([^,\n\r]+)", re.IGNORECASE),
    # "kind" 30023 (Long-form Content)
    re.compile(r'"kind"\s*(\d+)\s*\(([^)]+)\)', re.IGNORECASE),
    # kind 30023: Long-form Content
    re.compile(r"kind\s*(\d+):\s*([^,\n\r]+)", re.IGNORECASE),
)

_USER_AGENT = "kindscope"
_ACCEPT = "application/vnd.github.v3+json"


def extract_kind_definitions(text: str) -> dict[int, str]:
    """Extract ``{kind: name}`` pairs from NIP markdown.

    Patterns are tried in order and, within each, in document order; the first
    plausible name found for a kind wins. Kinds outside 0-65535 and names that
    fail [is_plausible_kind_name()][kindscope.models.kinds.is_plausible_kind_name]
    are skipped.
    """
    found: dict[int, str] = {}
    for pattern in _KIND_PATTERNS:
        for match in pattern.finditer(text):
            kind = int(match.group(1))
            name = match.group(2).strip()
            if kind in found or kind > EVENT_KIND_MAX or not is_plausible_kind_name(name):
                continue
            found[kind] = name
    return found


class KindNameCache:
    """Names discovered at runtime, scoped to one resolver.

    Only plausible names are accepted, so a bad lookup result can never
    shadow the placeholder.
    """

    __slots__ = ("_names",)

    def __init__(self) -> None:
        self._names: dict[int, str] = {}

    def get(self, kind: int) -> str | None:
        return self._names.get(kind)

    def put(self, kind: int, name: str) -> bool:
        """Cache *name* for *kind*; returns ``False`` if the name is implausible."""
        if not is_plausible_kind_name(name):
            return False
        self._names[kind] = name.strip()
        return True

    def clear(self) -> None:
        self._names.clear()

    def __len__(self) -> int:
        return len(self._names)


class KindNameResolver:
    """Resolve kind numbers to display names.

    Args:
        names: Immutable startup table, usually [KindNames][kindscope.models.kinds.KindNames].
        config: Remote lookup settings; lookups happen only when
            ``config.enabled`` is true.
        cache: Runtime cache (a fresh one by default).
        logger: Structured logger.

    Examples:
        ```python
        resolver = KindNameResolver(KindNames(), KindLookupConfig(enabled=True))
        resolver.name_of(1)         # 'Short Text Note'
        await resolver.resolve(1111)  # 'Comment' if found on GitHub, else 'Kind 1111'
        ```
    """

    def __init__(
        self,
        names: Mapping[int, str],
        config: KindLookupConfig,
        cache: KindNameCache | None = None,
        *,
        logger: Logger | None = None,
    ) -> None:
        self._names = names
        self._config = config
        self._cache = cache if cache is not None else KindNameCache()
        self._logger = logger or Logger("kindscope.kinds")

    @property
    def cache(self) -> KindNameCache:
        return self._cache

    def name_of(self, kind: int) -> str:
        """Synchronous lookup in the startup table and cache only."""
        return self._names.get(kind) or self._cache.get(kind) or placeholder_name(kind)

    async def resolve(self, kind: int) -> str:
        """Return the name of *kind*, searching GitHub if enabled and unknown."""
        known = self._names.get(kind) or self._cache.get(kind)
        if known:
            return known
        if not self._config.enabled:
            return placeholder_name(kind)

        async with self._session() as session:
            return await self._lookup(session, kind)

    async def resolve_many(self, kinds: Iterable[int]) -> dict[int, str]:
        """Resolve several kinds over one HTTP session."""
        kinds = list(dict.fromkeys(kinds))
        resolved = {kind: self.name_of(kind) for kind in kinds}
        missing = [kind for kind in kinds if kind not in self._names and self._cache.get(kind) is None]
        if not missing or not self._config.enabled:
            return resolved

        async with self._session() as session:
            for kind in missing:
                resolved[kind] = await self._lookup(session, kind)
        return resolved

    def _session(self) -> aiohttp.ClientSession:
        headers = {"User-Agent": _USER_AGENT, "Accept": _ACCEPT}
        if self._config.token is not None:
            headers["Authorization"] = f"Bearer {self._config.token.get_secret_value()}"
        return aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self._config.timeout),
        )

    async def _lookup(self, session: aiohttp.ClientSession, kind: int) -> str:
        try:
            items = await self._search(session, f"repo:{self._config.repo} kind {kind}", per_page=5)
            for item in items[:1]:
                text = await self._fetch_content(session, item["url"])
                name = extract_kind_definitions(text).get(kind)
                if name and self._cache.put(kind, name):
                    self._logger.debug("kind_name_found", kind=kind, name=name, path=item.get("path", ""))
                    return name
        except (aiohttp.ClientError, TimeoutError, ValueError, KeyError, LookupFailedError) as e:
            self._logger.warning(
                "kind_lookup_failed", kind=kind, error=str(e), error_type=type(e).__name__
            )
        return placeholder_name(kind)

    async def _fetch_json(
        self, session: aiohttp.ClientSession, url: str, params: Mapping[str, str] | None = None
    ) -> Any:
        async with session.get(url, params=params) as resp:
            if resp.status != 200:
                raise LookupFailedError(f"GitHub API error: {resp.status}")
            return await read_bounded_json(resp, self._config.max_response_size)

    async def _search(
        self, session: aiohttp.ClientSession, query: str, *, per_page: int
    ) -> list[dict[str, Any]]:
        data = await self._fetch_json(
            session,
            f"{self._config.api_url}/search/code",
            params={"q": query, "per_page": str(per_page)},
        )
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise ValueError("Unexpected search response")
        return [item for item in data["items"] if isinstance(item, dict) and "url" in item]

    async def _fetch_content(self, session: aiohttp.ClientSession, url: str) -> str:
        data = await self._fetch_json(session, url)
        if not isinstance(data, dict) or not isinstance(data.get("content"), str):
            raise ValueError("Unexpected file response")
        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValueError(f"Undecodable file content: {e}") from e

    async def discover(self) -> dict[int, str]:
        """Scan the NIPs repository for kind definitions missing from the startup table.

        Searches for files mentioning ``kind`` (first 100 hits) and extracts
        their definitions. Files that fail to download are logged and skipped.

        Returns:
            Newly found ``{kind: name}`` pairs, not including known kinds.

        Raises:
            LookupFailedError: If the search request itself fails.
        """
        discovered: dict[int, str] = {}

        async with self._session() as session:
            try:
                items = await self._search(session, f"repo:{self._config.repo} kind", per_page=100)
            except (aiohttp.ClientError, TimeoutError, ValueError) as e:
                raise LookupFailedError(f"Search failed: {e}") from e
            self._logger.info("kind_files_found", count=len(items))

            for item in items:
                path = item.get("path", "")
                try:
                    text = await self._fetch_content(session, item["url"])
                except (aiohttp.ClientError, TimeoutError, ValueError, LookupFailedError) as e:
                    self._logger.warning("kind_file_failed", path=path, error=str(e))
                    continue
                for kind, name in extract_kind_definitions(text).items():
                    if kind not in self._names and kind not in discovered:
                        discovered[kind] = name
                        self._logger.debug("kind_name_found", kind=kind, name=name, path=path)

        return discovered
