"""
Profiling of method execution times.

Decorate a function with @profile and its total execution time will be measured
while the Profiler is running. Afterwards, have a look at the execution times
with Profiler.print_summary().
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


class MethodProfile:
    """
    Accumulated execution time of a single method.

    Serves as a node in the tree of nested method calls.
    """

    def __init__(self, name: str) -> None:
        #: qualified name of the method
        self.name = name
        #: total time spent in the method (in seconds)
        self.execution_time = 0.0
        #: the total number of calls
        self.ncalls = 0
        #: profiles of the methods called from within this one
        self.nested_profiles: dict[str, MethodProfile] = {}

    def child(self, name: str) -> MethodProfile:
        """Return the nested profile called `name`, creating it if necessary."""
        if name not in self.nested_profiles:
            self.nested_profiles[name] = MethodProfile(name)
        return self.nested_profiles[name]

    def flattened_data(self) -> dict[str, MethodProfile]:
        """
        Merge the profiles of the whole subtree by method name.

        Returns
        -------
        dict[str, MethodProfile]
            A dictionary mapping method names to merged profiles.
        """
        data: dict[str, MethodProfile] = {}
        if self.ncalls > 0:
            data[self.name] = MethodProfile(self.name)
            data[self.name].execution_time = self.execution_time
            data[self.name].ncalls = self.ncalls
        for nested in self.nested_profiles.values():
            for name, p in nested.flattened_data().items():
                merged = data.setdefault(name, MethodProfile(name))
                merged.execution_time += p.execution_time
                merged.ncalls += p.ncalls
        return data

    def rows(self, total_time: float, depth: int = 0, nested: bool = True) -> list[tuple[str, float, float, int]]:
        """
        Tabulate (name, total time, relative time, number of calls) of the subtree.

        Parameters
        ----------
        total_time
            The reference time for the relative column.
        depth
            The current depth in the tree, used for indentation.
        nested
            Whether to keep the call tree or flatten it.
        """
        if not nested:
            profiles = sorted(self.flattened_data().values(), key=lambda p: p.execution_time, reverse=True)
            return [(p.name, p.execution_time, p.execution_time / total_time, p.ncalls) for p in profiles]
        result = []
        if self.ncalls > 0:
            result.append(("  " * depth + self.name, self.execution_time,
                           self.execution_time / total_time, self.ncalls))
            total_time = self.execution_time or total_time
            depth += 1
        for p in sorted(self.nested_profiles.values(), key=lambda p: p.execution_time, reverse=True):
            result += p.rows(total_time, depth, nested)
        return result


class Profiler:
    """
    Static class for accessing/controlling the profiling of the code.

    Only calls made from the main thread are recorded, the workers of the
    parallel transform engine are not profiled.
    """

    _start_time: float | None = None
    _root_profile = MethodProfile("")
    _current_profile = _root_profile

    @staticmethod
    def start() -> None:
        """(Re)start the Profiler, discarding previous measurements."""
        Profiler._root_profile = MethodProfile("")
        Profiler._current_profile = Profiler._root_profile
        Profiler._start_time = time.perf_counter()

    @staticmethod
    def stop() -> None:
        """Stop recording."""
        Profiler._start_time = None

    @staticmethod
    def is_active() -> bool:
        """Check if the Profiler is running."""
        return Profiler._start_time is not None

    @staticmethod
    def summary(nested: bool = True) -> list[tuple[str, float, float, int]]:
        """Return the table of measured methods (see MethodProfile.rows)."""
        if Profiler._start_time is None:
            return []
        total_time = time.perf_counter() - Profiler._start_time
        return Profiler._root_profile.rows(total_time, nested=nested)

    @staticmethod
    def print_summary(nested: bool = True) -> None:
        """Print a summary on the execution times of the decorated methods."""
        if not Profiler.is_active():
            print("Profiler is inactive.")
            return
        print("Profiler results:")
        print("{:<70} {:>11} {:>11} {:>8}".format("method name", "total", "relative", "#calls"))
        print("-" * 103)
        for name, total, relative, ncalls in Profiler.summary(nested):
            print(f"{name:<70} {total:10.3f}s {relative:11.2%} {ncalls:8d}")


def profile(method: F) -> F:
    """Decorate a function to record its execution time in the Profiler."""

    @wraps(method)
    def do_profile(*args, **kwargs):
        if not Profiler.is_active() or threading.current_thread() is not threading.main_thread():
            return method(*args, **kwargs)
        parent = Profiler._current_profile
        current = parent.child(method.__qualname__)
        Profiler._current_profile = current
        ts = time.perf_counter()
        try:
            return method(*args, **kwargs)
        finally:
            current.execution_time += time.perf_counter() - ts
            current.ncalls += 1
            Profiler._current_profile = parent

    return do_profile  # type: ignore[return-value]
