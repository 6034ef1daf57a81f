"""Job lifecycle: pipeline stages, progress checkpoints and the controller."""

from .controller import JobController, build_controller
from .pipeline import PipelineResult, SummaryPipeline
from .progress import Checkpoint

__all__ = ["Checkpoint", "JobController", "PipelineResult", "SummaryPipeline", "build_controller"]
