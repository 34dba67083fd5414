"""
Registry of performance metrics keyed by response type.

Metrics are registered by name together with the response types they apply
to and their optimal direction. The order of registration defines each
response type's default metric table.

Example:
    >>> from machineshop.metrics.registry import METRICS
    >>>
    >>> @METRICS.register("MedAE", types=[ResponseType.NUMERIC], maximize=False)
    ... def median_absolute_error(observed, predicted, control):
    ...     return float(np.median(np.abs(observed - predicted)))
    >>>
    >>> METRICS.get("MedAE", ResponseType.NUMERIC)
    Metric(name='MedAE', ...)
"""

from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Union

import logging

from ..data.response import ResponseType
from ..exceptions import MetricUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metric:
    """A named performance metric.

    Attributes:
        name: Registered name, used as the metric label in results.
        func: Callable ``(observed, predicted, control) -> float``.
        types: Response types the metric applies to.
        maximize: Whether larger values are better.
        label: Descriptive name.
    """
    name: str
    func: Callable
    types: FrozenSet[ResponseType]
    maximize: bool
    label: str = ""

    def applies_to(self, response_type: ResponseType) -> bool:
        return response_type in self.types

    def __call__(self, observed, predicted, control) -> float:
        return self.func(observed, predicted, control)


class MetricRegistry:
    """
    A registry of metrics retrievable by name and response type.

    A name may be registered more than once for disjoint sets of response
    types (e.g. 'Brier' for factor and for survival responses).

    Attributes:
        name: Human-readable name for this registry (for error messages).
    """

    def __init__(self, name: str = "metrics") -> None:
        self._name = name
        self._metrics: List[Metric] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def names(self) -> List[str]:
        """All registered metric names."""
        return list(dict.fromkeys(m.name for m in self._metrics))

    def register(
        self,
        name: str,
        types: Iterable[ResponseType],
        maximize: bool,
        label: str = ""
    ) -> Callable[[Callable], Callable]:
        """
        Register a metric function.

        Args:
            name: Name to register under.
            types: Response types the metric applies to.
            maximize: Whether larger values are better.
            label: Optional descriptive name.

        Returns:
            A decorator that registers the function and returns it unchanged.

        Raises:
            ValueError: If the name is already registered for any of the
                response types.
        """
        types = frozenset(ResponseType(t) for t in types)

        def decorator(func: Callable) -> Callable:
            clash = [m for m in self._metrics if m.name == name and m.types & types]
            if clash:
                raise ValueError(
                    f"'{name}' is already registered in {self._name} registry for "
                    f"{sorted(t.value for t in clash[0].types & types)}. "
                    f"Registered names: {self.names}"
                )
            self._metrics.append(Metric(
                name=name,
                func=func,
                types=types,
                maximize=maximize,
                label=label or name
            ))
            return func

        return decorator

    def get(self, name: str, response_type: Optional[ResponseType] = None) -> Metric:
        """
        Retrieve a metric by name, optionally for a specific response type.

        Raises:
            KeyError: If the name is not registered.
            MetricUnavailableError: If the metric does not apply to
                ``response_type``.
        """
        variants = [m for m in self._metrics if m.name == name]
        if not variants:
            raise KeyError(
                f"'{name}' not found in {self._name} registry. "
                f"Available: {self.names}"
            )
        if response_type is None:
            return variants[0]
        for metric in variants:
            if metric.applies_to(response_type):
                return metric
        raise MetricUnavailableError(
            f"Metric '{name}' is not available for {ResponseType(response_type).value} responses"
        )

    def for_type(self, response_type: ResponseType) -> List[Metric]:
        """Default metric table for a response type, in registration order."""
        return [m for m in self._metrics if m.applies_to(response_type)]

    def resolve(
        self,
        metrics: Optional[Sequence[Union[str, Metric]]],
        response_type: ResponseType
    ) -> List[Metric]:
        """
        Metrics to compute for a response type.

        Requested metrics that do not apply to the response type are skipped.
        Unknown names raise KeyError.
        """
        if metrics is None:
            return self.for_type(response_type)
        if isinstance(metrics, (str, Metric)):
            metrics = [metrics]

        resolved = []
        for metric in metrics:
            try:
                if isinstance(metric, Metric):
                    if not metric.applies_to(response_type):
                        raise MetricUnavailableError(
                            f"Metric '{metric.name}' is not available for "
                            f"{response_type.value} responses"
                        )
                    resolved.append(metric)
                else:
                    resolved.append(self.get(metric, response_type))
            except MetricUnavailableError as e:
                logger.debug("Skipping metric: %s", e)
        return resolved

    def __contains__(self, name: str) -> bool:
        return any(m.name == name for m in self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def __repr__(self) -> str:
        return f"MetricRegistry(name='{self._name}', registered={self.names})"


METRICS = MetricRegistry("metrics")
