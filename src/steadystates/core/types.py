"""Common type aliases used throughout the package."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeAlias

import numpy as np
import numpy.typing

# Common type for Arrays, e.g. a vector of harmonic variables
Array: TypeAlias = numpy.typing.NDArray[np.float64 | np.complexfloating]

# Type for purely real-valued arrays (e.g. swept parameter values)
RealArray: TypeAlias = numpy.typing.NDArray[np.float64]

# Type for complex-valued arrays
ComplexArray: TypeAlias = numpy.typing.NDArray[np.complexfloating]

# Type for boolean arrays, e.g. classification bitmaps and masks
BoolArray: TypeAlias = numpy.typing.NDArray[np.bool_]

# Objects that can be coerced into an Array
ArrayLike: TypeAlias = numpy.typing.ArrayLike

# Index into the parameter grid: a linear index or one integer per swept axis
GridIndex: TypeAlias = int | tuple[int, ...]

# A full state: symbol name -> numeric value (variables and parameters)
StateDict: TypeAlias = dict[str, Any]

# Read-only state mapping as accepted by the integrators
StateMapping: TypeAlias = Mapping[str, Any]

# Jacobian function: variables ++ swept parameter values -> square matrix
JacobianFunction: TypeAlias = Callable[[Array], Array]

# Class selection: "all", a single class name or a sequence of names
ClassSelection: TypeAlias = str | Sequence[str]
