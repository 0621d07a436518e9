# denoise.py
"""Scalar Kalman smoother for additive background noise."""
import numpy as np

KALMAN_GAIN = 0.05
PROCESS_NOISE = 1e-5
INITIAL_ERROR_COVARIANCE = 0.1


def kalman_denoise(
    signal: np.ndarray,
    measurement_noise: float = KALMAN_GAIN,
    process_noise: float = PROCESS_NOISE,
) -> np.ndarray:
    """Track a slowly varying level through noisy samples.

    Random-walk model: the state is predicted unchanged, and each sample
    pulls the estimate toward itself by the Kalman gain. The gain starts
    high (P=0.1) and settles as the error covariance shrinks.

    Args:
        signal: Mono float signal.
        measurement_noise: Measurement noise variance R. Larger values smooth
            harder.
        process_noise: Process noise variance Q added before every update.

    Returns:
        Smoothed float32 signal, same length as input.
    """
    x = np.asarray(signal, dtype=np.float64)
    output = np.zeros(len(x), dtype=np.float32)
    estimate = 0.0
    error_cov = INITIAL_ERROR_COVARIANCE

    for i, sample in enumerate(x):
        prediction = estimate
        error_cov += process_noise
        gain = error_cov / (error_cov + measurement_noise)
        estimate = prediction + gain * (sample - prediction)
        error_cov = (1.0 - gain) * error_cov
        output[i] = estimate

    return output
