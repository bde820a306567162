"""Join/delete planning for cluster membership."""

from clusterops.scaling.planner import delete, join, scale_from_args

__all__ = ["delete", "join", "scale_from_args"]
