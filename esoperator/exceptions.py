"""
Custom exceptions for the pod removal operator.

Unsafe-to-delete pods and pods that do not map to a cluster node are not
errors; they are expressed as reconcile results. Only the conditions below
are surfaced as exceptions.
"""
from typing import Optional, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from esoperator.core.results import Results


class OperatorException(Exception):
    """
    Base exception for all operator errors.

    All custom exceptions should inherit from this base class.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MalformedClusterStateError(OperatorException):
    """
    Raised when the observed cluster state cannot be used.

    Fatal to the current evaluation: no deletion is attempted and the caller
    is expected to requeue.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Malformed cluster state: {message}",
            details=details,
        )


class KubernetesError(OperatorException):
    """
    Raised when Kubernetes API operations fail.

    Used for K8s API errors, connection issues, etc.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Kubernetes error: {message}",
            details=details,
        )


class PodNotFoundError(KubernetesError):
    """Raised when a pod to delete no longer exists."""

    def __init__(self, namespace: str, name: str):
        super().__init__(
            message=f"pod {namespace}/{name} not found",
            details={"namespace": namespace, "name": name},
        )


class PodDeletionError(OperatorException):
    """
    Aggregate of the pod deletions that failed during one evaluation.

    The directives produced for every candidate, failed or not, are kept on
    ``results`` so partial progress is not lost.
    """

    def __init__(self, errors: Dict[str, Exception], results: "Results"):
        self.errors = errors
        self.results = results
        names = ", ".join(sorted(errors))
        super().__init__(
            message=f"Failed to delete {len(errors)} pod(s): {names}",
            details={name: str(err) for name, err in errors.items()},
        )


__all__ = [
    "OperatorException",
    "MalformedClusterStateError",
    "KubernetesError",
    "PodNotFoundError",
    "PodDeletionError",
]
