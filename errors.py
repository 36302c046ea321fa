#!/usr/bin/env python3
# errors.py
#
# Summary:
# - Errors raised while building, running or summarizing a scenario
#
# Notes:
# - None of them is fatal to a session: a failed run leaves the scenario store
#   untouched and the next run can go ahead.


class ScenarioError(Exception):
    """Base class for every run-aborting error."""


class InvalidInputError(ScenarioError):
    """A date input is missing or cannot be parsed."""


class MalformedTrajectoryError(ScenarioError):
    """Engine output is missing expected columns or rows."""


class OutOfRangeError(ScenarioError):
    """A summary metric reads past the end of the trajectory."""


class RtEstimationError(ScenarioError):
    """Non-positive cumulative infections inside the Rt regression window."""


class IndicatorNotFoundError(ScenarioError):
    """An intervention indicator that must be active never is."""
