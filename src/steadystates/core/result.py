"""The Result class: steady-state solutions of a parameter sweep and their classes."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from .equations import HarmonicEquations, HarmonicVariable, as_variables
from .types import Array, BoolArray, GridIndex, JacobianFunction, StateDict

if TYPE_CHECKING:
    from .masks import MaskedArray


class ResultSettings:
    """
    A wrapper class that holds all the settings of a Result.
    """

    def __init__(self) -> None:
        #: number of worker threads used to transform the solutions
        self.nthreads = os.cpu_count() or 1
        #: show progress bars during lengthy computations?
        self.show_progress = False
        #: print diagnostic notices (e.g. on branch switching)?
        self.verbose = True
        #: maximum absolute imaginary part of a physical solution
        self.im_tol = 1e-6
        #: largest real part of a Jacobian eigenvalue still counted as stable
        self.rel_tol = 1e-10


class Result:
    """
    Steady states of a system on a grid of swept parameters.

    For every point of the grid, a fixed number of branches (solutions of the
    steady-state equations) is stored. Branches that cease to exist in some
    region of the sweep are kept as complex (unphysical) solutions, so the
    branch count is constant across the sweep. Boolean class bitmaps (e.g.
    "physical", "stable") label every branch at every grid point.

    The solutions and existing class bitmaps are treated as read-only: new
    classes may be added, but existing bitmaps are never modified in place.
    """

    def __init__(self,
                 solutions: Any,
                 swept_parameters: Mapping[str, Any],
                 fixed_parameters: Mapping[str, Any] | None = None,
                 variables: Sequence[str | HarmonicVariable] | None = None,
                 classes: Mapping[str, Any] | None = None,
                 jacobian: JacobianFunction | None = None,
                 equations: HarmonicEquations | None = None,
                 settings: ResultSettings | None = None) -> None:
        """
        Initialize the Result.

        Parameters
        ----------
        solutions
            Array-like of shape (*grid_shape, branch_count, nvars).
        swept_parameters
            Ordered mapping from parameter name to its values, one entry per grid axis.
        fixed_parameters
            Mapping from parameter name to its (constant) value.
        variables
            The harmonic variables (or their names) in the order of the last
            axis of `solutions`. Defaults to the variables of `equations`.
        classes
            Mapping from class name to a boolean array of shape
            (*grid_shape, branch_count). If omitted and a Jacobian is
            available, the default classification is performed.
        jacobian
            Jacobian function (variables ++ swept values -> matrix). Built from
            `equations` if omitted.
        equations
            The equations of motion, required for branch following.
        settings
            Tolerances, threading and verbosity settings.
        """
        #: the settings (tolerances, threads, verbosity) of this result
        self.settings = settings if settings is not None else ResultSettings()
        #: the steady-state solutions, shape (*grid_shape, branch_count, nvars)
        self.solutions: np.ndarray = np.array(solutions)
        if not np.issubdtype(self.solutions.dtype, np.number):
            raise ValueError(f"Solutions must be numeric, got dtype {self.solutions.dtype}")
        # integer stores are promoted, parameters and transforms must not be truncated
        self.solutions = self.solutions.astype(np.result_type(self.solutions.dtype, np.float64))
        if self.solutions.ndim < 3:
            raise ValueError("Solutions must have shape (*grid_shape, branch_count, nvars), "
                             f"got shape {self.solutions.shape}")
        self.solutions.setflags(write=False)
        #: the swept parameters (name -> values), one per grid axis
        self.swept_parameters: dict[str, np.ndarray] = {k: np.asarray(v) for k, v in swept_parameters.items()}
        #: the fixed parameters (name -> value)
        self.fixed_parameters: dict[str, Any] = dict(fixed_parameters or {})
        #: the equations of motion of the harmonic variables
        self.equations = equations
        if variables is None:
            if equations is None:
                raise ValueError("Either the variables or the equations of motion must be given")
            variables = equations.variables
        #: the harmonic variables, in the order of the solution vectors
        self.variables: list[HarmonicVariable] = as_variables(variables)
        self._check_shapes()
        if equations is not None:
            equations.check_parameters(self.swept_parameters, self.fixed_parameters)
        if jacobian is None and equations is not None:
            jacobian = equations.jacobian_function(list(self.swept_parameters), self.fixed_parameters)
        #: the Jacobian function of the harmonic equations
        self.jacobian = jacobian
        #: the classification bitmaps (class name -> bool array)
        self.classes: dict[str, BoolArray] = {}
        for name, bitmap in (classes or {}).items():
            self.add_class(name, bitmap)
        if classes is None and jacobian is not None:
            from .classification import classify_default
            classify_default(self)

    def _check_shapes(self) -> None:
        if len(self.swept_parameters) != self.ndim:
            raise ValueError(f"Got {len(self.swept_parameters)} swept parameters for a grid of "
                             f"dimension {self.ndim}")
        for (name, values), n in zip(self.swept_parameters.items(), self.grid_shape):
            if values.ndim != 1 or len(values) != n:
                raise ValueError(f"Swept parameter '{name}' has {values.size} values, "
                                 f"but the grid axis has length {n}")
        if self.solutions.shape[-1] != len(self.variables):
            raise ValueError(f"Solutions have {self.solutions.shape[-1]} entries per branch, "
                             f"but {len(self.variables)} variables were given")

    def __repr__(self) -> str:
        return (f"Result({self.branch_count} branches on a {'x'.join(map(str, self.grid_shape))} grid, "
                f"variables: {', '.join(self.variable_names)}, "
                f"swept: {', '.join(self.swept_parameters)}, classes: {', '.join(self.classes)})")

    @property
    def grid_shape(self) -> tuple[int, ...]:
        """The shape of the parameter grid."""
        return self.solutions.shape[:-2]

    @property
    def ndim(self) -> int:
        """The number of swept dimensions."""
        return len(self.grid_shape)

    @property
    def branch_count(self) -> int:
        """The number of branches at every grid point."""
        return self.solutions.shape[-2]

    @property
    def nvars(self) -> int:
        """The number of harmonic variables."""
        return self.solutions.shape[-1]

    @property
    def variable_names(self) -> list[str]:
        """The names of the harmonic variables."""
        return [v.name for v in self.variables]

    @property
    def free_symbols(self) -> list[str]:
        """
        Variables followed by the swept parameters.

        This order is assumed by all compiled functions (transforms, Jacobians).
        """
        return self.variable_names + list(self.swept_parameters)

    def add_class(self, name: str, bitmap: Any) -> None:
        """Add (or replace) the classification bitmap `name`."""
        bitmap = np.array(bitmap, dtype=bool)
        expected = self.grid_shape + (self.branch_count,)
        if bitmap.shape != expected:
            raise ValueError(f"Class '{name}' has shape {bitmap.shape}, expected {expected}")
        bitmap.setflags(write=False)
        self.classes[name] = bitmap

    def grid_index(self, index: GridIndex) -> tuple[int, ...]:
        """
        Convert `index` into a full grid index.

        A single integer is treated as a linear (row-major) index.
        """
        idx = (index,) if np.isscalar(index) else tuple(index)  # type: ignore[arg-type]
        if len(idx) == self.ndim:
            return tuple(int(i) for i in idx)
        if len(idx) == 1:
            return tuple(int(i) for i in np.unravel_index(int(idx[0]), self.grid_shape))
        raise ValueError(f"Index {index} undefined for a solution of size {self.grid_shape}")

    def swept_at(self, index: GridIndex) -> dict[str, Any]:
        """The values of the swept parameters at the grid point `index`."""
        idx = self.grid_index(index)
        return {name: values[i] for (name, values), i in zip(self.swept_parameters.items(), idx)}

    def get_single_solution(self, branch: int, index: GridIndex) -> StateDict:
        """
        Return all variables and parameters of the solution on `branch` at `index`.

        Returns
        -------
        StateDict
            Ordered dictionary: variables, swept parameters, fixed parameters.
        """
        idx = self.grid_index(index)
        solution: StateDict = dict(zip(self.variable_names, self.solutions[idx][branch]))
        solution.update(self.swept_at(idx))
        solution.update(self.fixed_parameters)
        return solution

    def get_single_solutions(self, index: GridIndex) -> list[StateDict]:
        """Return the solutions of all branches at `index` (see get_single_solution)."""
        return [self.get_single_solution(b, index) for b in range(self.branch_count)]

    def get_variable_solutions(self, branch: int, index: GridIndex) -> Array:
        """Return the vector of variables ++ swept parameter values on `branch` at `index`."""
        idx = self.grid_index(index)
        swept = [values[i] for values, i in zip(self.swept_parameters.values(), idx)]
        return np.concatenate([self.solutions[idx][branch], np.asarray(swept, dtype=self.solutions.dtype)])

    def get_class(self, branch: int, class_name: str) -> BoolArray:
        """The bitmap of `class_name` for a single branch, shaped like the grid."""
        if class_name not in self.classes:
            raise KeyError(f"Undefined class '{class_name}', available: {list(self.classes)}")
        return self.classes[class_name][..., branch]

    def swept_values(self) -> np.ndarray:
        """The values of the (only) swept parameter of a 1D sweep."""
        if self.ndim != 1:
            raise ValueError("For the moment only 1 dimension sweeps are supported.")
        return next(iter(self.swept_parameters.values()))

    def get_solutions(self, y: Any = None, **kwargs) -> MaskedArray:
        """Shortcut to steadystates.core.masks.get_solutions."""
        from .masks import get_solutions
        return get_solutions(self, y, **kwargs)

    def transform_solutions(self, f: Any, **kwargs) -> Any:
        """Shortcut to steadystates.core.transform.transform_solutions."""
        from .transform import transform_solutions
        return transform_solutions(self, f, **kwargs)
