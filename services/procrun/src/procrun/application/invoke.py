from __future__ import annotations

import logging

from procrun.adapters.subprocess_runner import SubprocessRunner
from procrun.application.settings import InvokerSettings
from procrun.domain.cancellation import Cancellation
from procrun.domain.request import Request
from procrun.domain.response import Response
from procrun.ports.process_runner import ProcessRunnerPort

logger = logging.getLogger(__name__)


def default_runner(settings: InvokerSettings | None = None) -> ProcessRunnerPort:
    settings = settings or InvokerSettings()
    return SubprocessRunner(kill_signal=settings.kill_signal, chunk_size=settings.chunk_size)


def invoke(
    request: Request,
    cancellation: Cancellation | None = None,
    *,
    timeout: float | None = None,
    runner: ProcessRunnerPort | None = None,
) -> Response:
    """Run ``request`` to completion and return its normalized outcome.

    Raises ``SpawnFailure`` when the process could not be started (including
    when ``cancellation`` has already fired) and ``WaitFailure`` when its exit
    status could not be collected. A child killed by a signal, whether on its
    own or because ``cancellation`` fired or ``timeout`` elapsed, yields a
    Response with code -1 and a ``SignalTermination`` in ``err``.
    """
    runner = runner or default_runner()
    if timeout is None:
        return runner.run(request, cancellation)
    logger.debug("running %s with a %ss deadline", request.path, timeout)
    with Cancellation.with_timeout(timeout, parent=cancellation) as scoped:
        return runner.run(request, scoped)
