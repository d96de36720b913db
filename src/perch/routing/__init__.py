"""Ordered first-match router."""

from perch.routing.route import HTTP_METHODS, PathSegment, Route, RouteMatch
from perch.routing.router import PreviousPath, Router, parse_path

__all__ = ["HTTP_METHODS", "PathSegment", "PreviousPath", "Route", "RouteMatch", "Router", "parse_path"]
