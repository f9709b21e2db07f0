from typing import Any, Protocol


class PolicyEvaluator(Protocol):
    async def evaluate(self, policy: str, input_text: str, data_text: str) -> Any: ...

    async def format(self, policy: str) -> str: ...
