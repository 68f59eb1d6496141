"""
Linear response of steady states to small perturbations.

The response is obtained either from the eigenvalues of the Jacobian in the
rotating frame or from the response matrix of the harmonic equations, which
also resolves the up- and down-converted components in the lab frame.
"""

from .jacobian_response import eigenvalues, eigenvectors, get_rotframe_jacobian_response, rotframe_response
from .response_matrix import ResponseMatrix, get_linear_response, get_response

__all__ = [
    "get_rotframe_jacobian_response",
    "rotframe_response",
    "eigenvalues",
    "eigenvectors",
    "ResponseMatrix",
    "get_response",
    "get_linear_response",
]
