"""
Combi Oven Update Management System
Copyright (C) 2024 Jose Adrian Perez Cueto

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

"""
Ordered deployment steps and the runner that executes them.

A deployment is a list of named steps. The runner executes them in order,
records which ones completed and stops at the first failure. Nothing that a
completed step changed is undone.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .errors import DeployError
from .utils.index import log_message


@dataclass
class DeploymentStep:
    """A named unit of work. The action raises DeployError when its precondition fails."""
    name: str
    description: str
    action: Callable[[], None]


@dataclass
class DeploymentResult:
    """Outcome of a deployment run."""
    operation: str
    success: bool = False
    version: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    error: Optional[str] = None
    duration: float = 0.0

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "success": self.success,
            "version": self.version,
            "completed_steps": list(self.completed_steps),
            "failed_step": self.failed_step,
            "error": self.error,
            "duration": self.duration,
        }


class StepRunner:
    """Runs deployment steps in order and stops on the first failure."""

    def run(self, steps: List[DeploymentStep], result: DeploymentResult) -> DeploymentResult:
        """
        Execute steps sequentially.

        Args:
            steps: Steps in execution order
            result: Result object to fill in; returned for convenience

        Returns:
            DeploymentResult: success is True only if every step completed
        """
        start_time = time.time()

        for step in steps:
            log_message(step.description)
            try:
                step.action()
            except DeployError as e:
                self._record_failure(result, step, str(e))
                break
            except OSError as e:
                self._record_failure(result, step, f"{type(e).__name__}: {e}")
                break
            result.completed_steps.append(step.name)
        else:
            result.success = True

        result.duration = time.time() - start_time
        return result

    def _record_failure(self, result: DeploymentResult, step: DeploymentStep, message: str) -> None:
        result.failed_step = step.name
        result.error = message
        log_message(message, "ERROR")
        log_message(f"Step '{step.name}' failed after: {', '.join(result.completed_steps) or 'no completed steps'}", "DEBUG")
