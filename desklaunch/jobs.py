"""Fire-and-forget background processes joined by a single barrier."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

log = logging.getLogger(__name__)


@dataclass
class Job:
    description: str
    process: subprocess.Popen


@dataclass
class JobGroup:
    """Spawns independent processes and waits for all of them at once.

    Failures (spawn errors and non-zero exits) are logged and collected;
    they never stop the other jobs or the launch.
    """

    env: Optional[Mapping[str, str]] = None
    jobs: List[Job] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    def spawn(
        self,
        argv: Sequence[str],
        *,
        stdout: Optional[Path] = None,
        description: Optional[str] = None,
    ) -> Optional[Job]:
        description = description or " ".join(str(a) for a in argv)
        env = dict(self.env) if self.env is not None else None
        try:
            if stdout is not None:
                with open(stdout, "wb") as out:
                    proc = subprocess.Popen([str(a) for a in argv], stdout=out, env=env)
            else:
                proc = subprocess.Popen([str(a) for a in argv], env=env)
        except OSError as exc:
            log.error("ERROR: %s could not be started: %s", description, exc)
            self.failures.append(description)
            return None
        job = Job(description, proc)
        self.jobs.append(job)
        log.debug("Started %s (pid %d)", description, proc.pid)
        return job

    def wait(self) -> List[str]:
        """Block until every spawned job exits; return failed descriptions."""
        for job in self.jobs:
            status = job.process.wait()
            if status != 0:
                log.error("ERROR: %s exited abnormally with status %d", job.description, status)
                self.failures.append(job.description)
        self.jobs = []
        return list(self.failures)
