"""
Filtering of solutions by their classes.

A mask marks which branches fall into a set of classes at every grid point.
Applying a mask yields a numpy masked array: entries of excluded branches are
masked (their data is left untouched), so an excluded solution is never
confused with a solution that is genuinely NaN. `.filled()` replaces the
excluded entries with NaN.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from .profiling import profile
from .types import BoolArray, ClassSelection

if TYPE_CHECKING:
    from .result import Result

MaskedArray = np.ma.MaskedArray


def _as_list(classes: ClassSelection | None) -> list[str]:
    if classes is None:
        return []
    if isinstance(classes, str):
        return [classes]
    return list(classes)


def _branch_list(result: Result, branches: Sequence[int] | None) -> list[int]:
    if branches is None:
        return list(range(result.branch_count))
    branches = [int(b) for b in np.atleast_1d(branches)]
    for b in branches:
        if not 0 <= b < result.branch_count:
            raise IndexError(f"Branch {b} out of range [0, {result.branch_count})")
    return branches


def get_mask(result: Result, classes: ClassSelection, not_classes: ClassSelection | None = None,
             branches: Sequence[int] | None = None) -> BoolArray:
    """
    Mark the solutions that fall into all `classes` but into none of `not_classes`.

    Parameters
    ----------
    result
        The result holding the class bitmaps.
    classes
        A class name, a list of class names, or "all" (which selects every
        solution regardless of `not_classes`).
    not_classes
        Class name(s) to exclude.
    branches
        The branches to consider, defaults to all branches.

    Returns
    -------
    BoolArray
        Array of shape (*grid_shape, len(branches)).

    Raises
    ------
    KeyError
        If a class is not defined in the result.
    """
    branches = _branch_list(result, branches)
    shape = result.grid_shape + (len(branches),)
    if isinstance(classes, str) and classes == "all":
        return np.ones(shape, dtype=bool)
    selected = _as_list(classes)
    excluded = _as_list(not_classes)
    for c in selected + excluded:
        if c not in result.classes:
            raise KeyError(f"Undefined class '{c}', available: {list(result.classes)}")
    bools = [result.classes[c] for c in selected] + [~result.classes[c] for c in excluded]
    if not bools:
        return np.ones(shape, dtype=bool)
    mask = np.logical_and.reduce(bools)
    return mask[..., branches]


def apply_mask(values: Any, mask: BoolArray) -> MaskedArray:
    """
    Exclude the entries of `values` where `mask` is False.

    Two shapes of `values` are supported: one scalar per branch (same shape
    as the mask) or one vector per branch (an additional trailing axis, the
    whole vector is excluded).

    Returns
    -------
    MaskedArray
        The unchanged values, masked where `mask` is False. For floating
        point and complex data, the fill value is NaN.
    """
    values = np.asarray(values)
    mask = np.asarray(mask, dtype=bool)
    if values.shape == mask.shape:
        excluded = ~mask
    elif values.ndim == mask.ndim + 1 and values.shape[:-1] == mask.shape:
        excluded = np.broadcast_to(~mask[..., np.newaxis], values.shape)
    else:
        raise ValueError(f"Cannot apply a mask of shape {mask.shape} to values of shape {values.shape}")
    masked = np.ma.masked_array(values, mask=excluded.copy())
    if np.issubdtype(values.dtype, np.inexact):
        masked.set_fill_value(np.nan)
    return masked


@profile
def get_solutions(result: Result, y: Any = None, branches: Sequence[int] | None = None, realify: bool = False,
                  class_: ClassSelection = ("physical", "stable"),
                  not_class: ClassSelection | None = None) -> MaskedArray:
    """
    Extract solutions of the classes `class_` (but not `not_class`).

    Parameters
    ----------
    result
        The result to extract from.
    y
        An expression (string or callable, see transform_solutions) to evaluate
        per solution. If None, the full solution vectors are returned.
    branches
        The branches to consider, defaults to all branches.
    realify
        Take the real part of the solutions before evaluating `y`.
    class_
        Class name(s) to include, or "all".
    not_class
        Class name(s) to exclude.

    Returns
    -------
    MaskedArray
        Of shape (*grid_shape, len(branches)) if `y` is given, else
        (*grid_shape, len(branches), nvars).
    """
    branches = _branch_list(result, branches)
    mask = get_mask(result, class_, not_class, branches=branches)
    if y is None:
        values = result.solutions[..., branches, :]
        if realify:
            values = values.real
        return apply_mask(values, mask)
    from .transform import transform_solutions
    return apply_mask(transform_solutions(result, y, branches=branches, realify=realify), mask)
