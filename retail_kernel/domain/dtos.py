"""
DTOs -- Shared result types for non-throwing kernel calls.

Responsibility:
    Defines the immutable result structures hosts branch on without
    exception control flow: ValidationError (one problem), ValidationResult
    (zero or more problems) and Outcome (value-or-error of any kernel
    operation), plus ``attempt``, which runs a kernel function and folds a
    RetailKernelError into an Outcome.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ValidationError.code is always a RetailKernelError ``code`` value, so
      thrown and returned failures share one vocabulary.
    - Outcome holds exactly one of value / error.

Failure modes:
    - ``attempt`` only converts RetailKernelError; any other exception is a
      programming error and propagates unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from retail_kernel.exceptions import RetailKernelError

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation error.

    Contract:
        Carries a machine-readable code, human-readable message, optional field
        name, and optional details dict.

    Non-goals:
        - Does NOT raise exceptions -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def from_exception(cls, exc: RetailKernelError) -> ValidationError:
        """Build from a typed kernel error, keeping its structured attributes."""
        details = {
            k: v for k, v in vars(exc).items() if not k.startswith("_")
        }
        return cls(
            code=exc.code,
            message=str(exc),
            field=details.get("field"),
            details=details or None,
        )


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validation.

    Contract:
        Aggregates zero or more ValidationErrors. is_valid is True only when
        there are no errors.

    Guarantees:
        - Immutable (frozen dataclass)
        - errors is always a tuple (never None)
        - bool(result) == result.is_valid for convenience
    """

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def success(cls) -> ValidationResult:
        """Create a successful validation result."""
        return cls(is_valid=True, errors=())

    @classmethod
    def failure(cls, *errors: ValidationError) -> ValidationResult:
        """Create a failed validation result."""
        return cls(is_valid=False, errors=tuple(errors))

    @property
    def error(self) -> str | None:
        """Message of the first error, or None when valid."""
        return self.errors[0].message if self.errors else None

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Value-or-error result of a kernel operation.

    Contract:
        Exactly one of ``value`` / ``error`` is meaningful: ``error`` is
        None on success. Built by ``attempt``.
    """

    value: T | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value; raise ValueError when the outcome is a failure."""
        if self.error is not None:
            raise ValueError(f"{self.error.code}: {self.error.message}")
        return self.value  # type: ignore[return-value]


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """
    Call a kernel function and return its result as an Outcome.

    Postconditions:
        - Outcome(value=fn(...)) when the call succeeds.
        - Outcome(error=ValidationError(code=exc.code, ...)) when it raises
          a RetailKernelError.
    """
    try:
        return Outcome(value=fn(*args, **kwargs))
    except RetailKernelError as exc:
        return Outcome(error=ValidationError.from_exception(exc))
