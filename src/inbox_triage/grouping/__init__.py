"""Cross-thread grouping and display ordering."""

from .assembly import assemble_groups
from .merge import ThreadMergeEngine
from .ordering import ThreadOrderingPipeline, priority_score

__all__ = ["ThreadMergeEngine", "ThreadOrderingPipeline", "assemble_groups", "priority_score"]
