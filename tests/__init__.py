"""Test suite for the Bayesian meta-analysis package.

Unit tests cover cleaning, type detection, adapters, priors, the
sampler boundary and posterior summaries; integration tests run the
whole pipeline with the bundled sampler. Run `pytest` from the project
root.
"""
