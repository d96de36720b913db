"""Cookie header handling.

Requests carry cookies in one ``Cookie`` header; perch only ever sets
its own session cookie, described by ``SetCookie``.
"""

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """Map cookie names to values.

    Pairs without ``=`` are skipped and double-quoted values are
    unquoted. When a name repeats, the first value wins; browsers send
    the cookie with the most specific path first.
    """
    cookies: dict[str, str] = {}
    for chunk in header.split(";"):
        name, sep, value = chunk.partition("=")
        name = name.strip()
        if not sep or not name or name in cookies:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = value
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str | None = "Lax"

    def to_header_value(self) -> str:
        attributes = [f"{self.name}={self.value}", f"Path={self.path}"]
        if self.max_age is not None:
            attributes.append(f"Max-Age={self.max_age}")
        flags = (("Secure", self.secure), ("HttpOnly", self.httponly))
        attributes.extend(flag for flag, enabled in flags if enabled)
        if self.samesite:
            attributes.append(f"SameSite={self.samesite}")
        return "; ".join(attributes)
