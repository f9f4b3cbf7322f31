"""
Frame-Rate Independent Smoothing

Three small time-driven helpers shared by the compositor and orchestrator:

1. SmoothedParameter - EMA drift toward a target (pointer influence, camera)
2. SinusoidalLFO - phase accumulator for breathing and autonomous drift
3. Fade - exponential approach of the black overlay toward clear/opaque

All of them integrate delta-time, so behaviour is the same at 30 or 144 fps.
"""

import math


class SmoothedParameter:
    """A scalar that chases its target with time constant `tau` seconds.

    The forest uses a short tau (~0.3 s) for the pointer pull and a longer
    one (~0.8 s) for the camera so the view lags the hand slightly.
    """

    def __init__(self, value, time_constant):
        self.current = value
        self.target = value
        self.tau = max(time_constant, 1e-6)

    def set_target(self, target):
        self.target = target

    def update(self, dt):
        """Move toward the target by 1 - exp(-dt / tau) of the remaining gap."""
        if dt > 0:
            self.current += (self.target - self.current) * -math.expm1(-dt / self.tau)
        return self.current

    def get_value(self):
        return self.current


class SinusoidalLFO:
    """Single-parameter phase accumulator with sinusoidal modulation.

    Phase accumulates from delta-time, so the oscillation is independent
    of the frame rate. A starting phase of pi/2 turns it into a cosine.
    """

    def __init__(self, base_value, amplitude, frequency_hz=0.01, phase=0.0):
        """Initialize LFO.

        Args:
            base_value: Center point of oscillation
            amplitude: Oscillation range (± from base)
            frequency_hz: Oscillation frequency in Hz
            phase: Starting phase in radians
        """
        self.base_value = base_value
        self.amplitude = amplitude
        self.frequency_hz = frequency_hz
        self.phase = phase

    def update(self, dt):
        self.phase += 2.0 * math.pi * self.frequency_hz * max(dt, 0.0)

    def get_value(self):
        return self.base_value + self.amplitude * math.sin(self.phase)


class Fade:
    """Opacity of the full-frame black overlay, 0 (clear) to 255 (opaque).

    The value approaches its target exponentially at `speed` per second.
    fade_in() starts from fully opaque so a regeneration behind it is
    never seen as a pop.
    """

    MAX = 255.0

    def __init__(self, value=255.0, target=0.0, speed=0.6):
        self.value = min(self.MAX, max(0.0, value))
        self.target = min(self.MAX, max(0.0, target))
        self.speed = speed

    def update(self, dt):
        if dt > 0:
            alpha = 1.0 - math.exp(-dt * self.speed)
            self.value += alpha * (self.target - self.value)
        self.value = min(self.MAX, max(0.0, self.value))
        return self.value

    def fade_out(self):
        self.target = self.MAX

    def fade_in(self):
        self.value = self.MAX
        self.target = 0.0

    @property
    def visible(self):
        """True when the overlay is dark enough to be worth drawing."""
        return self.value > 1.0

    @property
    def is_settled(self):
        return abs(self.value - self.target) <= 1.0
