"""Request pipeline: stage contract, context, dispatcher and orchestration."""

from remote_client.pipeline.base import (
    Downstream,
    ErrorAction,
    Next,
    Reject,
    RequestAction,
    Resolve,
    ResponseAction,
    Stage,
)
from remote_client.pipeline.cancellation import run_cancellable
from remote_client.pipeline.context import RequestContext
from remote_client.pipeline.dispatcher import Dispatcher
from remote_client.pipeline.metrics import PipelineMetrics
from remote_client.pipeline.pipeline import RequestPipeline
from remote_client.pipeline.state_machine import (
    AttemptState,
    AttemptStateError,
    AttemptStateMachine,
)


__all__ = [
    "AttemptState",
    "AttemptStateError",
    "AttemptStateMachine",
    "Dispatcher",
    "Downstream",
    "ErrorAction",
    "Next",
    "PipelineMetrics",
    "Reject",
    "RequestAction",
    "RequestContext",
    "RequestPipeline",
    "Resolve",
    "ResponseAction",
    "Stage",
    "run_cancellable",
]
