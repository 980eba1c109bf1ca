from typing import Protocol

from procrun.domain.cancellation import Cancellation
from procrun.domain.request import Request
from procrun.domain.response import Response


class ProcessRunnerPort(Protocol):
    def run(
        self, request: Request, cancellation: Cancellation | None = None
    ) -> Response: ...
