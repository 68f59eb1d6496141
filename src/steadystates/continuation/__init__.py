"""
Following branches of steady states along parameter sweeps.

When a followed branch vanishes at a bifurcation, the system is quenched and
evolved in time to find the stable branch it relaxes onto.
"""

from .branch_following import BranchFollower, closest_branch_index, follow_branch

__all__ = [
    "BranchFollower",
    "follow_branch",
    "closest_branch_index",
]
