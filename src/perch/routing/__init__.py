"""Routing — ordered route table compiled at boot, first match wins.

Routes are registered during setup and compiled into an immutable
lookup structure when the kernel boots.
"""

from perch.routing.route import Found, MatchResult, MethodMismatch, NoMatch, Route
from perch.routing.router import Router

__all__ = ["Found", "MatchResult", "MethodMismatch", "NoMatch", "Route", "Router"]
