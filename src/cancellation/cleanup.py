from __future__ import annotations

import gc
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "cancelled by user"


class TempFileCleanupTask:
    description = "sweep temporary files"

    def __init__(self, file_ops) -> None:
        self._file_ops = file_ops

    def execute(self) -> bool:
        self._file_ops.cleanup_temp_files()
        return True


class MemoryCleanupTask:
    description = "reclaim memory"

    def execute(self) -> bool:
        gc.collect()
        return True


class JobStateCleanupTask:
    description = "finalize job state"

    def __init__(self, job_store, job_id: str) -> None:
        self._store = job_store
        self._job_id = job_id

    def execute(self) -> bool:
        # no-op once the job is terminal
        self._store.mark_failed(self._job_id, CANCELLED_MESSAGE)
        return True


class ResourceCleanupTask:
    def __init__(self, name: str, *resources: Callable[[], Optional[bool]]) -> None:
        self.name = name
        self._resources: List[Callable[[], Optional[bool]]] = list(resources)

    @property
    def description(self) -> str:
        return f"release resources: {self.name}"

    def add(self, resource: Callable[[], Optional[bool]]) -> None:
        self._resources.append(resource)

    def execute(self) -> bool:
        ok = True
        for release in self._resources:
            try:
                if release() is False:
                    ok = False
            except Exception as e:
                logger.warning("%s: release failed: %s", self.description, e)
                ok = False
        return ok
