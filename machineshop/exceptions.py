"""
Exception hierarchy for machineshop.

Configuration problems surface immediately, failures inside a resampling
partition abort the whole run, and inapplicable metrics are skipped by the
caller that requested them.
"""


class MachineShopError(Exception):
    """Base class for all machineshop errors."""


class ConfigurationError(MachineShopError, ValueError):
    """Invalid resampling configuration or incompatible inputs."""


class PairingError(ConfigurationError):
    """Resamples lack a 1:1 partition correspondence."""


class MetricUnavailableError(MachineShopError, LookupError):
    """A metric does not apply to the observed response type."""


class PartitionExecutionError(MachineShopError, RuntimeError):
    """
    Failure inside one partition's fit/predict cycle.

    Parameters
    ----------
    partition : int
        Identifier of the partition that failed.
    label : str
        Human-readable partition label (e.g. 'Fold03.Rep1').
    cause : BaseException
        The underlying adapter error.
    """

    def __init__(self, partition: int, label: str, cause: BaseException):
        self.partition = partition
        self.label = label
        self.cause = cause
        super().__init__(
            f"Resampling aborted in partition {partition} ({label}): "
            f"{type(cause).__name__}: {cause}"
        )

    def __reduce__(self):
        return (type(self), (self.partition, self.label, self.cause))
