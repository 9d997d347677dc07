"""In-process stand-in for the yarn executable."""

from tests.fixtures.fake_yarn.runner import (
    FakeYarnRunner,
    copy_sources_to_dist,
    make_library,
    make_project,
)

__all__ = [
    "FakeYarnRunner",
    "copy_sources_to_dist",
    "make_library",
    "make_project",
]
