import logging
import time

import numpy as np


def vectorfield(x, damping=0.1, stiffness=1.0, cubic=0.5):
    """Damped Duffing oscillator, x[0] position, x[1] velocity."""
    return np.array([x[1], -stiffness * x[0] - cubic * x[0] ** 3 - damping * x[1]])


def simulate(x0, dt, n_samples, n_substeps=10):
    """
    Sample a trajectory every dt with RK4 substeps.
    """
    h = dt / n_substeps
    X = np.zeros((2, n_samples))
    X[:, 0] = x0
    x = np.asarray(x0, dtype=float)
    for j in range(1, n_samples):
        for _ in range(n_substeps):
            k1 = vectorfield(x)
            k2 = vectorfield(x + 0.5 * h * k1)
            k3 = vectorfield(x + 0.5 * h * k2)
            k4 = vectorfield(x + h * k3)
            x = x + h / 6.0 * (k1 + 2 * k2 + 2 * k3 + k4)
        X[:, j] = x
    return dt * np.arange(n_samples), X


if __name__ == "__main__":

    import jax.numpy as jnp
    import imdynamics

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    dt = 0.05
    initial_conditions = [[1.0, 0.0], [0.0, 0.8], [-0.7, 0.5], [0.4, -0.9]]

    print("simulating trajectories... ", end="")
    start = time.time()
    trajectories = [simulate(x0, dt, 400) for x0 in initial_conditions]
    print("took {:3.3f} sec".format(time.time() - start))

    model = imdynamics.identify_dynamics(
        trajectories,
        "R_PolyOrd", 3,
        "style", "modal",
        "n_folds", 4,
        "fold_style", "traj",
        "l_vals", [0, 1e-8, 1e-6, 1e-4],
        verbose=True,
    )

    R = model.reduced_dynamics
    print("selected regularization: {:.1e}".format(R.l_opt))
    print("cross-validation error: {:.3e}".format(R.cv_error))
    print("continuous-time eigenvalues:", np.asarray(model.eigenvalues_lin_part_flow))

    # one-step prediction error on the first trajectory
    t, X = trajectories[0]
    X_pred = R.evaluate(jnp.asarray(X[:, :-1]))
    err = jnp.max(jnp.abs(X_pred - X[:, 1:]))
    print("max one-step error: {:.3e}".format(float(err)))

    imdynamics.save_model("duffing_map.pkl", model)
