"""
Per-job context: isolated work directory and segmentation settings.
"""

import logging
import shutil
import tempfile
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from .config import SegmentationConfig

logger = logging.getLogger("narrator")


def new_job_id(prefix: str = "video") -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}"


@dataclass
class RenderJobContext:
    """Values scoped to exactly one render job.

    Two concurrent jobs never share a context, so each gets its own work
    directory. When the directory was created here it is removed on close;
    a caller-supplied ``--workdir`` is left in place.
    """

    job_id: str
    work_dir: Path
    config: SegmentationConfig = field(default_factory=SegmentationConfig)
    owns_work_dir: bool = False

    @classmethod
    def create(
        cls,
        work_dir: str | None = None,
        config: SegmentationConfig | None = None,
        prefix: str = "video",
    ) -> "RenderJobContext":
        job_id = new_job_id(prefix)
        if work_dir:
            path = Path(work_dir)
            path.mkdir(parents=True, exist_ok=True)
            owns = False
        else:
            path = Path(tempfile.mkdtemp(prefix="narrator-"))
            owns = True
        logger.debug("Job %s work dir: %s", job_id, path)
        return cls(job_id=job_id, work_dir=path, config=config or SegmentationConfig(), owns_work_dir=owns)

    def path(self, name: str) -> Path:
        return self.work_dir / name

    def close(self) -> None:
        if not self.owns_work_dir:
            return
        try:
            shutil.rmtree(self.work_dir)
        except OSError as e:
            logger.warning("Could not clean up work dir %s: %s", self.work_dir, e)

    def __enter__(self) -> "RenderJobContext":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
