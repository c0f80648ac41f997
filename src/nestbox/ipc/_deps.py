"""Host capabilities the mailbox handlers delegate to.

Everything here lives outside nestbox: chat adapters (send/download),
the group registry, and the task store. Delivery and download calls are
best effort: implementations log their own failures and never raise.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from nestbox.types import RegisteredGroup, ScheduledTask


class IpcDeps(Protocol):
    async def send_message(self, jid: str, text: str) -> None: ...

    async def send_image(self, jid: str, file_path: Path, caption: str | None) -> None: ...

    async def send_file(self, jid: str, file_path: Path, file_name: str) -> None: ...

    async def download_media(
        self,
        chat_jid: str,
        message_id: str,
        file_key: str,
        dest_dir: Path,
        request_id: str,
    ) -> str | None:
        """Fetch platform media into *dest_dir*; return the filename written or None."""
        ...

    def registered_groups(self) -> dict[str, RegisteredGroup]: ...

    def register_group(self, jid: str, group: RegisteredGroup) -> None: ...

    async def create_task(self, task: dict[str, Any]) -> None: ...

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> None: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def get_task_by_id(self, task_id: str) -> ScheduledTask | None: ...
