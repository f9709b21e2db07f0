from typing import Protocol

from regolab.models import LintReport


class Linter(Protocol):
    async def lint(self, policy: str) -> LintReport: ...
