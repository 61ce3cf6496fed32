#!/usr/bin/env python3
"""
traffic/pid.py
==============
Discrete PID controller used for lane keeping.
"""

from __future__ import annotations


class PIDController:
    """Proportional-integral-derivative controller without windup guard.

    Parameters
    ----------
    kp, ki, kd : float
        Gains on the error, its integral and its derivative.
    """

    def __init__(self, kp: float, ki: float, kd: float) -> None:
        self.kp = kp
        self.ki = ki
        self.kd = kd
        self.reset()

    def reset(self) -> None:
        self.error = 0.0
        self.integral = 0.0
        self.derivative = 0.0
        self.previous_error = 0.0

    def update(self, error: float, dt: float) -> None:
        if dt <= 0.0:
            raise ValueError(f"dt must be > 0, got {dt!r}")
        self.error = error
        self.integral += error * dt
        self.derivative = (error - self.previous_error) / dt
        self.previous_error = error

    def output(self) -> float:
        return self.kp * self.error + self.ki * self.integral + self.kd * self.derivative
