from typing import Protocol


class FileWatcherPort(Protocol):
    """Background source of file-change notifications for policy documents."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def wait(self) -> None: ...
