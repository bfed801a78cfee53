"""
Bind-mount local volume driver.

Answers the capability negotiation of the Kubernetes flexvolume protocol.
The driver only mounts and unmounts; it never attaches or detaches.

The kubelet runs the driver executable as ``<driver> <command> [args]`` and
reads one JSON response from stdout.
"""
import sys
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class Status(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"


class Capabilities(BaseModel):
    attach: bool = False


class Response(BaseModel):
    """Driver response, printed as JSON on stdout for the kubelet."""

    status: Status
    message: str = ""
    capabilities: Optional[Capabilities] = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class BindMountDriver:
    """Flexvolume driver backed by bind mounts of local directories."""

    def init(self) -> Response:
        """Successful response once the driver is ready."""
        return Response(
            status=Status.SUCCESS,
            message="driver is available",
            capabilities=Capabilities(attach=False),
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Run one flexvolume command and print its response."""
    args = sys.argv[1:] if argv is None else argv
    command = args[0] if args else ""

    if command == "init":
        response = BindMountDriver().init()
    else:
        response = Response(status=Status.FAILURE, message=f"unsupported command: {command!r}")
    print(response.to_json())
    return 0 if response.status is Status.SUCCESS else 1


if __name__ == "__main__":
    sys.exit(main())
