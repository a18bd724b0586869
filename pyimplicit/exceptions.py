"""
Error kinds raised by the estimation engine.

Every failure detected inside the core surfaces as one of these.
Retry and fallback are left to the caller.
"""

from typing import Optional


class ImplicitSGDError(Exception):
    """Base class for all pyimplicit errors."""
    pass


class UnknownFamilyError(ImplicitSGDError, ValueError):
    """Family identifier does not name a registered family."""

    def __init__(self, name: str, valid):
        self.name = name
        self.valid = tuple(valid)
        super().__init__(
            f"Unknown family: '{name}'\n"
            f"Valid options: {', '.join(repr(v) for v in self.valid)}"
        )


class UnknownTransferError(ImplicitSGDError, ValueError):
    """Transfer identifier does not name a registered transfer function."""

    def __init__(self, name: str, valid):
        self.name = name
        self.valid = tuple(valid)
        super().__init__(
            f"Unknown transfer: '{name}'\n"
            f"Valid options: {', '.join(repr(v) for v in self.valid)}"
        )


class InvalidEtaError(ImplicitSGDError, ValueError):
    """Linear predictor is outside the transfer function's domain."""

    def __init__(self, eta: float, t: Optional[int] = None):
        self.eta = eta
        self.t = t
        super().__init__(
            "no valid set of coefficients has been found: "
            f"please supply starting values (iteration {t}, eta={eta})"
        )


class NonFiniteVarianceError(ImplicitSGDError, FloatingPointError):
    """V(mu) evaluated to NaN or Inf."""

    def __init__(self, t: Optional[int], eta: float, theta=None):
        self.t = t
        self.eta = eta
        self.theta = theta
        super().__init__(f"NA in V(mu) in iteration {t} (eta={eta})")


class NonFiniteDevianceError(ImplicitSGDError, FloatingPointError):
    """Deviance evaluated to NaN or Inf."""

    def __init__(self, t: Optional[int], deviance: float):
        self.t = t
        self.deviance = deviance
        super().__init__(f"Deviance is non-finite in iteration {t}: {deviance}")


class RootFindingError(ImplicitSGDError, RuntimeError):
    """Implicit-step solve failed. Callers may fall back to an explicit step."""
    pass


class NoRootBracketedError(RootFindingError):
    """F does not change sign over the search interval."""

    def __init__(self, lower: float, upper: float, f_lower: float, f_upper: float):
        self.lower = lower
        self.upper = upper
        self.f_lower = f_lower
        self.f_upper = f_upper
        super().__init__(
            f"No root bracketed in [{lower}, {upper}]: "
            f"F(lower)={f_lower}, F(upper)={f_upper}"
        )


class RootFindingDidNotConvergeError(RootFindingError):
    """Root finder hit its iteration cap before reaching the tolerance."""

    def __init__(self, maxiter: int, estimate: float, lower: float, upper: float):
        self.maxiter = maxiter
        self.estimate = estimate
        self.lower = lower
        self.upper = upper
        super().__init__(
            f"Root finding did not converge in {maxiter} iterations "
            f"(last estimate {estimate}, bracket [{lower}, {upper}])"
        )


__all__ = [
    "ImplicitSGDError",
    "UnknownFamilyError",
    "UnknownTransferError",
    "InvalidEtaError",
    "NonFiniteVarianceError",
    "NonFiniteDevianceError",
    "RootFindingError",
    "NoRootBracketedError",
    "RootFindingDidNotConvergeError",
]
