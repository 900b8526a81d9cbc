"""Interactive teardown of the resources named in the naming table.

Lists connections, then sources, then destinations; filters to our names
only; asks once per kind; deletes one at a time. There is no rollback if a
delete fails half way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List

from .hookdeck import HookdeckClient
from .resources import PROJECT_CONNECTION_NAMES, PROJECT_DESTINATION_NAMES, PROJECT_SOURCE_NAME

logger = logging.getLogger(__name__)


def prompt_confirm(question: str) -> bool:
    try:
        answer = input(question)
    except EOFError:
        # Closed stdin (piped or detached run) counts as "no".
        return False
    return answer.strip().lower() in ("y", "yes")


@dataclass
class CleanupResult:
    connections: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    destinations: List[str] = field(default_factory=list)


def _source_details(source: Dict[str, Any]) -> List[str]:
    return [f"URL: {source.get('url')}"]


def _connection_details(conn: Dict[str, Any]) -> List[str]:
    return [
        f"Source: {(conn.get('source') or {}).get('name')}",
        f"Destination: {(conn.get('destination') or {}).get('name')}",
    ]


def _destination_details(dest: Dict[str, Any]) -> List[str]:
    config = dest.get("config") or {}
    url = dest.get("url") or config.get("url")
    cli_path = dest.get("cli_path") or config.get("path")
    if url:
        return [f"URL: {url}"]
    if cli_path:
        return [f"CLI Path: {cli_path}"]
    return []


class CleanupReconciler:
    def __init__(
        self,
        hookdeck: HookdeckClient,
        confirm: Callable[[str], bool] = prompt_confirm,
        out: Callable[[str], None] = print,
    ) -> None:
        self.hookdeck = hookdeck
        self.confirm = confirm
        self.out = out

    async def _clean_kind(
        self,
        kind: str,
        items: List[Dict[str, Any]],
        names: List[str],
        details: Callable[[Dict[str, Any]], List[str]],
        delete: Callable[[str], Awaitable[None]],
    ) -> List[str]:
        ours = [i for i in items if i.get("name") in names]
        if not ours:
            self.out(f"No {kind}s found.")
            return []

        self.out(f"Found {len(ours)} {kind}(s):")
        for index, item in enumerate(ours, start=1):
            self.out(f"  {index}. {item.get('name')} (ID: {item.get('id')})")
            for line in details(item):
                self.out(f"     {line}")

        if not self.confirm(f"Do you want to delete all {len(ours)} {kind}(s)? (yes/no): "):
            self.out(f"{kind.capitalize()}s preserved.")
            return []

        deleted: List[str] = []
        for item in ours:
            item_id = str(item.get("id"))
            self.out(f"  Deleting {kind}: {item.get('name')} ({item_id})")
            await delete(item_id)
            deleted.append(item_id)
        logger.info("Deleted %d %s(s)", len(deleted), kind)
        return deleted

    async def run(self) -> CleanupResult:
        result = CleanupResult()
        result.connections = await self._clean_kind(
            "connection",
            await self.hookdeck.list_connections(),
            list(PROJECT_CONNECTION_NAMES.values()),
            _connection_details,
            self.hookdeck.delete_connection,
        )
        result.sources = await self._clean_kind(
            "source",
            await self.hookdeck.list_sources(),
            [PROJECT_SOURCE_NAME],
            _source_details,
            self.hookdeck.delete_source,
        )
        result.destinations = await self._clean_kind(
            "destination",
            await self.hookdeck.list_destinations(),
            list(PROJECT_DESTINATION_NAMES.values()),
            _destination_details,
            self.hookdeck.delete_destination,
        )
        return result
