"""
Tests for per-job context.
"""

from narrator.config import SegmentationConfig
from narrator.context import RenderJobContext


def test_temp_work_dir_is_removed():
    with RenderJobContext.create() as ctx:
        work = ctx.work_dir
        ctx.path("x.txt").write_text("x")
        assert work.is_dir()
    assert not work.exists()


def test_given_work_dir_is_kept(tmp_path):
    target = tmp_path / "job"
    with RenderJobContext.create(str(target)) as ctx:
        ctx.path("x.txt").write_text("x")
    assert (target / "x.txt").exists()


def test_jobs_do_not_share_state():
    cfg = SegmentationConfig(min_duration=2.0)
    a = RenderJobContext.create(config=cfg)
    b = RenderJobContext.create()
    try:
        assert a.job_id != b.job_id
        assert a.work_dir != b.work_dir
        assert a.config.min_duration == 2.0
        assert b.config.min_duration == 1.0
    finally:
        a.close()
        b.close()
