"""Adaptive sampling decisions and lossless/lossy time-series compression."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from enum import Enum

DataPoint = tuple[datetime, float]

_EPSILON = 0.000001
_RATE_HISTORY = 10
# Notional storage cost of one point: a timestamp plus a double.
_POINT_SIZE = 16
_ONE_MS = timedelta(milliseconds=1)
_ONE_SECOND = timedelta(seconds=1)


class SamplingStrategy(Enum):
    """How the sampler decides whether a new value is kept."""

    FIXED_RATE = 0
    ADAPTIVE_RATE = 1
    EVENT_BASED = 2
    DELTA_BASED = 3


class CompressionAlgorithm(Enum):
    """Which encoding is applied to a series of points."""

    NONE = 0
    RUN_LENGTH = 1
    DELTA_ENCODING = 2
    PIECEWISE = 3


def _whole_seconds(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds())


def _epoch_ms(moment: datetime) -> float:
    return moment.timestamp() * 1000.0


def run_length_encode(data: Sequence[DataPoint]) -> list[DataPoint]:
    """Collapse each run of equal values into its first and last point."""
    if not data:
        return []
    encoded: list[DataPoint] = []
    start_time, current_value = data[0]
    end_time = start_time
    for timestamp, value in data[1:]:
        if abs(value - current_value) < _EPSILON:
            end_time = timestamp
        else:
            encoded.append((start_time, current_value))
            encoded.append((end_time, current_value))
            current_value = value
            start_time = end_time = timestamp
    encoded.append((start_time, current_value))
    encoded.append((end_time, current_value))
    return encoded


def run_length_decode(data: Sequence[DataPoint]) -> list[DataPoint]:
    """Expand run pairs back into one point per second.

    Input that is empty or has an odd number of points is returned unchanged.
    """
    if not data or len(data) % 2:
        return list(data)
    decoded: list[DataPoint] = []
    for (start_time, value), (end_time, _) in zip(data[::2], data[1::2]):
        decoded.append((start_time, value))
        if start_time != end_time:
            seconds = _whole_seconds(start_time, end_time)
            decoded.extend(
                (start_time + j * _ONE_SECOND, value) for j in range(1, seconds)
            )
            decoded.append((end_time, value))
    return decoded


def delta_encode(data: Sequence[DataPoint]) -> list[DataPoint]:
    """Keep the first value whole and every later one as a difference."""
    if not data:
        return []
    encoded = [data[0]]
    encoded.extend(
        (timestamp, value - previous)
        for (_, previous), (timestamp, value) in zip(data, data[1:])
    )
    return encoded


def delta_decode(data: Sequence[DataPoint]) -> list[DataPoint]:
    """Rebuild absolute values by summing the differences."""
    if not data:
        return []
    decoded = [data[0]]
    current = data[0][1]
    for timestamp, delta in data[1:]:
        current += delta
        decoded.append((timestamp, current))
    return decoded


def piecewise_compress(data: Sequence[DataPoint], threshold: float) -> list[DataPoint]:
    """Keep only the points where a straight-line fit breaks down."""
    if len(data) <= 2:
        return list(data)
    compressed = [data[0]]
    start = 0
    for i in range(2, len(data)):
        x1, y1 = _epoch_ms(data[start][0]), data[start][1]
        x2, y2 = _epoch_ms(data[i - 1][0]), data[i - 1][1]
        slope = (y2 - y1) / (x2 - x1 + _EPSILON)
        x, y = _epoch_ms(data[i][0]), data[i][1]
        expected = y1 + slope * (x - x1)
        if abs(y - expected) > threshold * abs(y1):
            compressed.append(data[i - 1])
            start = i - 1
    compressed.append(data[-1])
    return compressed


def piecewise_decompress(data: Sequence[DataPoint]) -> list[DataPoint]:
    """Interpolate one point per second between consecutive key points."""
    if len(data) <= 1:
        return list(data)
    decoded: list[DataPoint] = []
    for (start_time, start_value), (end_time, end_value) in zip(data, data[1:]):
        decoded.append((start_time, start_value))
        if start_time != end_time:
            seconds = _whole_seconds(start_time, end_time)
            if seconds > 0:
                step = (end_value - start_value) / seconds
                decoded.extend(
                    (start_time + j * _ONE_SECOND, start_value + step * j)
                    for j in range(1, seconds)
                )
    decoded.append(data[-1])
    return decoded


class AdaptiveSampler:
    """Decides which samples to keep and compresses stored series.

    ``on_interval_changed(metric, interval_ms)`` and
    ``on_compression_ratio_changed(ratio)`` may be set to receive notifications.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._strategy = SamplingStrategy.FIXED_RATE
        self._algorithm = CompressionAlgorithm.NONE
        self._base_interval = 1000
        self._min_interval = 100
        self._max_interval = 60000
        self._delta_threshold = 0.05
        self._original_size = 0
        self._compressed_size = 0
        self._last_points: dict[str, DataPoint] = {}
        self._intervals: dict[str, int] = {}
        self._change_rates: dict[str, deque[float]] = {}
        self.on_interval_changed: Callable[[str, int], None] | None = None
        self.on_compression_ratio_changed: Callable[[float], None] | None = None

    @property
    def strategy(self) -> SamplingStrategy:
        with self._lock:
            return self._strategy

    @strategy.setter
    def strategy(self, strategy: SamplingStrategy) -> None:
        with self._lock:
            self._strategy = SamplingStrategy(strategy)

    @property
    def algorithm(self) -> CompressionAlgorithm:
        with self._lock:
            return self._algorithm

    @algorithm.setter
    def algorithm(self, algorithm: CompressionAlgorithm) -> None:
        with self._lock:
            self._algorithm = CompressionAlgorithm(algorithm)

    @property
    def base_interval(self) -> int:
        with self._lock:
            return self._base_interval

    @base_interval.setter
    def base_interval(self, msec: int) -> None:
        with self._lock:
            if not self._min_interval <= msec <= self._max_interval:
                raise ValueError(
                    f"base interval {msec} outside "
                    f"[{self._min_interval}, {self._max_interval}]"
                )
            self._base_interval = msec

    @property
    def min_interval(self) -> int:
        with self._lock:
            return self._min_interval

    @min_interval.setter
    def min_interval(self, msec: int) -> None:
        with self._lock:
            if not 0 < msec <= self._base_interval:
                raise ValueError(
                    f"minimum interval {msec} outside (0, {self._base_interval}]"
                )
            self._min_interval = msec

    @property
    def max_interval(self) -> int:
        with self._lock:
            return self._max_interval

    @max_interval.setter
    def max_interval(self, msec: int) -> None:
        with self._lock:
            if msec < self._base_interval:
                raise ValueError(
                    f"maximum interval {msec} below base {self._base_interval}"
                )
            self._max_interval = msec

    @property
    def delta_threshold(self) -> float:
        with self._lock:
            return self._delta_threshold

    @delta_threshold.setter
    def delta_threshold(self, threshold: float) -> None:
        with self._lock:
            if not 0.0 < threshold < 1.0:
                raise ValueError(f"threshold {threshold} outside (0, 1)")
            self._delta_threshold = threshold

    def add_data_point(
        self, metric: str, value: float, timestamp: datetime | None = None
    ) -> bool:
        """Offer a value; return True if it should be stored."""
        if timestamp is None:
            timestamp = datetime.now()
        with self._lock:
            if not self._should_sample(metric, value, timestamp):
                return False
            if self._strategy is SamplingStrategy.ADAPTIVE_RATE:
                self._update_interval(metric, value)
            self._last_points[metric] = (timestamp, value)
            return True

    def compress(self, data: Sequence[DataPoint]) -> list[DataPoint]:
        """Encode ``data`` with the current algorithm and update the ratio."""
        with self._lock:
            self._original_size += len(data) * _POINT_SIZE
            algorithm = self._algorithm
            if algorithm is CompressionAlgorithm.RUN_LENGTH:
                result = run_length_encode(data)
            elif algorithm is CompressionAlgorithm.DELTA_ENCODING:
                result = delta_encode(data)
            elif algorithm is CompressionAlgorithm.PIECEWISE:
                result = piecewise_compress(data, self._delta_threshold)
            else:
                result = list(data)
            self._compressed_size += len(result) * _POINT_SIZE
            if self._original_size > 0 and self.on_compression_ratio_changed:
                self.on_compression_ratio_changed(
                    self._compressed_size / self._original_size
                )
            return result

    def decompress(self, data: Sequence[DataPoint]) -> list[DataPoint]:
        """Decode ``data`` with the current algorithm."""
        with self._lock:
            algorithm = self._algorithm
        if algorithm is CompressionAlgorithm.RUN_LENGTH:
            return run_length_decode(data)
        if algorithm is CompressionAlgorithm.DELTA_ENCODING:
            return delta_decode(data)
        if algorithm is CompressionAlgorithm.PIECEWISE:
            return piecewise_decompress(data)
        return list(data)

    def current_interval(self, metric: str) -> int:
        """The sampling interval in milliseconds now used for ``metric``."""
        with self._lock:
            if self._strategy is not SamplingStrategy.ADAPTIVE_RATE:
                return self._base_interval
            return self._intervals.get(metric, self._base_interval)

    def compression_ratio(self) -> float:
        """Compressed size over original size; 1.0 before any compression."""
        with self._lock:
            if self._original_size == 0:
                return 1.0
            return self._compressed_size / self._original_size

    def reset(self) -> None:
        """Forget all per-metric history and compression statistics."""
        with self._lock:
            self._last_points.clear()
            self._intervals.clear()
            self._change_rates.clear()
            self._original_size = 0
            self._compressed_size = 0

    def _should_sample(self, metric: str, value: float, timestamp: datetime) -> bool:
        last = self._last_points.get(metric)
        if last is None:
            return True
        last_time, last_value = last
        strategy = self._strategy
        if strategy is SamplingStrategy.FIXED_RATE:
            return (timestamp - last_time) // _ONE_MS >= self._base_interval
        if strategy is SamplingStrategy.ADAPTIVE_RATE:
            interval = self._intervals.get(metric, self._base_interval)
            return (timestamp - last_time) // _ONE_MS >= interval
        absolute = abs(value - last_value)
        relative = absolute / (abs(last_value) + _EPSILON)
        if strategy is SamplingStrategy.EVENT_BASED:
            return relative >= self._delta_threshold
        return relative >= self._delta_threshold or absolute >= 1.0

    def _update_interval(self, metric: str, value: float) -> None:
        last = self._last_points.get(metric)
        if last is None:
            self._intervals[metric] = self._base_interval
            return
        last_value = last[1]
        rate = abs(value - last_value) / (abs(last_value) + _EPSILON)
        rates = self._change_rates.setdefault(metric, deque(maxlen=_RATE_HISTORY))
        rates.append(rate)
        average = sum(rates) / len(rates)

        threshold = self._delta_threshold
        if average >= threshold * 2:
            interval = self._min_interval
        elif average >= threshold:
            interval = max(self._min_interval, self._base_interval // 2)
        elif average <= threshold / 4:
            interval = min(self._max_interval, self._base_interval * 2)
        else:
            interval = self._base_interval

        if self._intervals.get(metric, self._base_interval) != interval:
            self._intervals[metric] = interval
            if self.on_interval_changed:
                self.on_interval_changed(metric, interval)