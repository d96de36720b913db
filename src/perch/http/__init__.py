"""Request and response types."""

from perch.http.request import Request
from perch.http.response import Redirect, Response

__all__ = ["Redirect", "Request", "Response"]
