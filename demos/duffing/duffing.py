r"""
Driven Duffing oscillator

x'' + gamma x' + omega0^2 x + alpha x^3 = F cos(omega t)

The steady states of the ansatz x = u1 cos(omega t) + v1 sin(omega t) are found
from the amplitude cubic, classified, and the resonant branch is followed
upwards in frequency through the bistable region until it jumps down.
"""

import numpy as np

from steadystates import HarmonicEquations, HarmonicVariable, Profiler, Result, follow_branch, sort_solutions
from steadystates.core.masks import get_mask
from steadystates.linear_response import get_rotframe_jacobian_response

parameters = {"omega0": 1.0, "gamma": 0.01, "alpha": 1.0, "F": 0.01}

# slow-flow equations of motion
A = "((omega0^2 - omega^2)*u1 + gamma*omega*v1 + 3/4*alpha*u1*(u1^2 + v1^2) - F)"
B = "((omega0^2 - omega^2)*v1 - gamma*omega*u1 + 3/4*alpha*v1*(u1^2 + v1^2))"
det = "(gamma^2 + 4*omega^2)"
variables = [HarmonicVariable("u1", "u", "omega", "x"), HarmonicVariable("v1", "v", "omega", "x")]
equations = HarmonicEquations.from_expressions(
    [f"-(gamma*{A} - 2*omega*{B})/{det}", f"-(2*omega*{A} + gamma*{B})/{det}"],
    variables, [*parameters, "omega"])

# steady states from the cubic in s = u1^2 + v1^2
omegas = np.linspace(1.0, 1.4, 201)
c = 0.75 * parameters["alpha"]
solutions = np.zeros((len(omegas), 3, 2), dtype=complex)
for i, w in enumerate(omegas):
    D = parameters["omega0"] ** 2 - w ** 2
    s = np.roots([c ** 2, 2 * D * c, D ** 2 + (parameters["gamma"] * w) ** 2, -parameters["F"] ** 2])
    solutions[i, :, 0] = (D + c * s) * s / parameters["F"]
    solutions[i, :, 1] = parameters["gamma"] * w * s / parameters["F"]

Profiler.start()

result = Result(sort_solutions(solutions), {"omega": omegas}, parameters, equations=equations)
result.settings.show_progress = True
print(result)

# follow the resonant branch
eligible = get_mask(result, ["physical", "stable"])
start = int(np.flatnonzero(eligible[0])[0])
branches, Ys = follow_branch(start, result, y="sqrt(u1^2 + v1^2)", tf=20000, rng=0)
for w, b, y in zip(omegas[::20], branches[::20], Ys[np.arange(len(omegas)), branches][::20]):
    print(f"omega = {w:.3f}  branch {b}  amplitude {y:.4f}")

# response of the followed branch to a weak probe in the rotating frame
C = get_rotframe_jacobian_response(result, np.linspace(0.001, 0.2, 200), branches, damping_mod=1.0)
print("peak response", C.max(), "at detuning", np.linspace(0.001, 0.2, 200)[np.argmax(C.max(axis=1))])

Profiler.print_summary()
