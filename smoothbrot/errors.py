"""Configuration errors raised before any sampling work is dispatched."""


class SamplingConfigError(ValueError):
    """Base class for invalid sampling or rendering configuration."""


class InvalidResolution(SamplingConfigError):
    pass


class InvalidZoom(SamplingConfigError):
    pass


class InvalidOffset(SamplingConfigError):
    pass


class InvalidThreshold(SamplingConfigError):
    pass


class InvalidIterationBudget(SamplingConfigError):
    pass


class InvalidSampleCount(SamplingConfigError):
    pass


class InvalidWorkerCount(SamplingConfigError):
    pass


class InvalidClampPercentile(SamplingConfigError):
    pass


class InvalidPalette(SamplingConfigError):
    pass
