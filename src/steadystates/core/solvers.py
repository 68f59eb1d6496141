"""Eigensolver for the (small, dense) Jacobians of harmonic equations."""

from __future__ import annotations

import numpy as np
import scipy.linalg

from .types import Array, ComplexArray


class EigenSolver:
    """
    A wrapper to the direct eigensolver of scipy.linalg.

    Finds all eigenvalues and eigenvectors of a dense Jacobian matrix.
    """

    def __init__(self) -> None:
        """Initialize the EigenSolver."""
        #: sort the eigenpairs by descending real part of the eigenvalues?
        self.sort = True
        #: results of the latest eigenvalue computation
        self.latest_eigenvalues: ComplexArray | None = None
        #: results of the latest eigenvector computation (one eigenvector per row)
        self.latest_eigenvectors: ComplexArray | None = None

    def solve(self, A: Array) -> tuple[ComplexArray, ComplexArray]:
        """
        Solve the eigenproblem A*x = v*x for the eigenvalues v and the eigenvectors x.

        Parameters
        ----------
        A
            The square matrix.

        Returns
        -------
        tuple[ComplexArray, ComplexArray]
            The eigenvalues and the eigenvectors, the i-th eigenvector being
            the i-th row of the second array.
        """
        A = np.asarray(A)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise ValueError(f"Eigenproblem requires a square matrix, got shape {A.shape}")
        eigenvalues, eigenvectors = scipy.linalg.eig(A)
        eigenvectors = eigenvectors.T
        if self.sort:
            # sort by largest eigenvalue (largest real part)
            idx = np.argsort(-eigenvalues.real, kind="stable")
            eigenvalues = eigenvalues[idx]
            eigenvectors = eigenvectors[idx]
        self.latest_eigenvalues = eigenvalues
        self.latest_eigenvectors = eigenvectors
        return eigenvalues, eigenvectors

    def eigenvalues(self, A: Array) -> ComplexArray:
        """Compute the eigenvalues of A only."""
        eigenvalues = scipy.linalg.eigvals(np.asarray(A))
        if self.sort:
            eigenvalues = eigenvalues[np.argsort(-eigenvalues.real, kind="stable")]
        self.latest_eigenvalues = eigenvalues
        return eigenvalues
