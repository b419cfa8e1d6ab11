"""
Gated invocation of the line counting job

The static-analysis gate is represented by an immutable GateDecision that is
handed to run_pipeline explicitly.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from linecounter.common.config import JobConfig
from linecounter.common.report import REPORT_FILE_NAME
from linecounter.coordinator.runner import JobRunner

logger = logging.getLogger(__name__)


class PipelineStatus(Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the static-analysis gate for one run"""
    blocker_count: int

    @classmethod
    def from_blocker_count(cls, blocker_count: int) -> 'GateDecision':
        if blocker_count < 0:
            raise ValueError(f"Blocker count cannot be negative: {blocker_count}")
        return cls(blocker_count=blocker_count)

    @property
    def is_open(self) -> bool:
        return self.blocker_count == 0


@dataclass(frozen=True)
class PipelineResult:
    run_number: int
    decision: GateDecision
    status: PipelineStatus
    report_path: Optional[str] = None


def run_pipeline(decision: GateDecision, input_path: str, output_path: str,
                 run_number: int, config: Optional[JobConfig] = None) -> PipelineResult:
    """
    Run the job if the gate is open

    Returns:
        PipelineResult; report_path is set only when the job succeeded
    """
    if not decision.is_open:
        logger.info(f"Run {run_number}: gate closed with {decision.blocker_count} "
                    f"blocker issue(s), job not invoked")
        return PipelineResult(run_number, decision, PipelineStatus.SKIPPED)

    runner = JobRunner(config)
    if not runner.run(input_path, output_path, job_id=f"run_{run_number}"):
        return PipelineResult(run_number, decision, PipelineStatus.FAILED)

    return PipelineResult(run_number, decision, PipelineStatus.SUCCEEDED,
                          os.path.join(output_path, REPORT_FILE_NAME))
