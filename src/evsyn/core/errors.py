"""Exception taxonomy for the meta-analysis pipeline.

Row-level problems (NA, infinite or out-of-bounds values) are never raised;
they are filtered and reported through :class:`~evsyn.core.diagnostics.Diagnostics`.
Everything here aborts the analysis before a partial result is produced.
"""

from typing import Optional, Sequence


class EvidenceSynthesisError(Exception):
    """Base class for all pipeline errors."""


class MalformedGridError(EvidenceSynthesisError, ValueError):
    """Grid input whose column labels cannot all be parsed as support points."""

    def __init__(self, labels: Sequence[object], n_rows: Optional[int] = None) -> None:
        self.labels = list(labels)
        self.n_rows = n_rows
        message = (
            "Expecting grid data, but not all column names are numeric: "
            f"non-numeric labels {self.labels!r}"
        )
        if n_rows is not None:
            message += f" ({n_rows} rows)"
        super().__init__(message)


class InvalidPriorError(EvidenceSynthesisError, ValueError):
    """Prior standard deviations that are missing, non-finite or not positive."""


class InvalidChainConfigError(EvidenceSynthesisError, ValueError):
    """MCMC chain parameters that cannot produce a usable trace."""


class UnsupportedInputError(EvidenceSynthesisError, TypeError):
    """Input that matches none of the supported likelihood shapes."""


class SamplerError(EvidenceSynthesisError, RuntimeError):
    """The sampler produced a model or trace the pipeline cannot use."""
