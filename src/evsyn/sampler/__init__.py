"""MCMC engines behind the meta-analysis pipeline.

:class:`PosteriorSampler` is the contract the pipeline depends on;
:class:`MetropolisSampler` is the engine used when none is supplied.
"""

from .base import PosteriorSampler  # noqa: F401
from .metropolis import MetropolisSampler  # noqa: F401
