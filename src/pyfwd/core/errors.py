"""Exceptions and warnings raised by the projection engine."""


class ConfigurationError(ValueError):
    """Fatal set-up problem detected before any numeric work is done.

    Raised for malformed coordinates, unknown stock-recruitment models,
    inconsistent iteration counts, bad control references and similar.
    """


class RecruitmentWarning(UserWarning):
    """A stock-recruitment parameter was undefined; recruitment set to 0."""


class SolverConvergenceWarning(UserWarning):
    """Newton-Raphson hit its iteration cap without meeting the tolerance."""
