# perfwatch

A library for sampling system performance counters on Linux and keeping a
history of them.

It reads the kernel's `/proc` files for CPU, memory, disk and network
activity, lists the processes with the most resident memory, and parses
the text that common GPU tools print. Samples can be thinned out and
compressed, logged to SQLite, and exported to CSV.

The package has no third-party dependencies.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Monitors

Each monitor reads from a proc root, `/proc` by default; pass another
directory to read recorded snapshots instead. The counter-based monitors
remember the previous reading and report the difference since then.

- `perfwatch.cpu.CpuMonitor(proc_root)`: `usage()` gives busy time in
  percent since the previous call. The first call returns `0.0`, as it only
  sets the baseline.
- `perfwatch.memory.MemoryMonitor(proc_root)`: `usage()` gives percent
  used; `total()` and `used()` give bytes. Buffers and page cache are not
  counted as used.
- `perfwatch.disk.DiskMonitor(proc_root)`: `io()` gives the MiB read plus
  written since the previous call (since boot on the first call). Only
  `sd*` and `nvme*` devices are counted.
- `perfwatch.network.NetworkMonitor(proc_root)`: `usage_detailed()` gives
  `(sent, received)` bytes since the previous call; `usage()` gives their
  sum in MiB. The `lo` interface is left out.
- `perfwatch.process.top_processes(max_count, proc_root)` returns up to
  `max_count` `ProcessInfo` records, largest resident memory first.

The parsers can be called on text directly: `parse_cpu_times` (returns a
`CpuTimes`), `parse_meminfo` (returns a `MemInfo`), `parse_diskstats`,
`parse_net_dev`, `parse_stat_comm` and `parse_vmrss`. A malformed
`/proc/stat` line raises `ValueError`.

```python
from perfwatch.cpu import CpuMonitor
from perfwatch.memory import MemoryMonitor

cpu = CpuMonitor()
cpu.usage()                    # first call only sets the baseline
print(cpu.usage())             # percent since the previous call
print(MemoryMonitor().usage())
```

## GPU information

`perfwatch.gpu` parses the output of GPU tools. It never runs them: you
pass in the text.

| Function | Parses | Returns |
| --- | --- | --- |
| `parse_nvidia_query` | nvidia-smi name and driver query | `GpuInfo` or `None` |
| `parse_wmic_csv` | wmic video controller CSV, preferring discrete cards | `GpuInfo` or `None` |
| `parse_dxdiag` | dxdiag text report | `GpuInfo` or `None` |
| `parse_rocm_smi` | rocm-smi product name and driver | `GpuInfo` or `None` |
| `parse_lspci` | `lspci -v` listing | `GpuInfo` or `None` |
| `parse_nvidia_stats` | nvidia-smi utilisation, temperature and memory (MiB) | `GpuStats` or `None` |

`GpuStats` holds memory in bytes.

## Samplers

Both samplers take the monitors as optional arguments (the defaults read
`/proc`) and a `gpu_probe`: any object with `detect()` returning a
`GpuInfo` or `None`, and `stats(info)` returning a `GpuStats` or `None`.
Without a probe no GPU is reported. Listeners are registered with
`connect(event, callback)`; an unknown event name raises `ValueError`.

`perfwatch.sampler.Sampler` takes one reading of every metric per
interval. `start(interval)` runs it on a background thread every
`interval` milliseconds, `stop()` halts it, and `collect()` takes a single
reading by hand. Its events are `cpu_usage`, `memory_stats`,
`network_stats`, `disk_stats`, `gpu_stats`, `gpu_availability`,
`gpu_notification` (sent when the GPU appears or disappears) and
`performance_data`.

`perfwatch.threaded.ThreadedSampler` runs each metric in its own
`SamplerThread` with its own interval, and checks the GPU every five
seconds:

```python
sampler.start(cpu_interval, memory_interval, disk_interval, network_interval)
```

When its `storage` is an initialised `DataStorage`, each reading is also
logged there as a `CPU`, `Memory`, `Disk`, `Network` or `GPU` sample.

## Adaptive sampling and compression

`perfwatch.adaptive.AdaptiveSampler` decides which points are worth
keeping. `add_data_point(metric, value, timestamp)` returns whether the
point should be stored. Its `strategy` is a `SamplingStrategy`:
`FIXED_RATE`, `ADAPTIVE_RATE`, `EVENT_BASED` or `DELTA_BASED`. The
intervals (`base_interval`, `min_interval`, `max_interval`, in
milliseconds) and `delta_threshold` are properties whose setters raise
`ValueError` on values out of range. `current_interval(metric)` gives the
interval now in use.

Its `algorithm` is a `CompressionAlgorithm` (`NONE`, `RUN_LENGTH`,
`DELTA_ENCODING`, `PIECEWISE`) used by `compress` and `decompress`.
`compression_ratio()` reports compressed over original size, and `reset()`
forgets all history. The encoders are plain functions too:

- `run_length_encode` and `run_length_decode`
- `delta_encode` and `delta_decode`
- `piecewise_compress(data, threshold)` and `piecewise_decompress`

Run-length and piecewise decoding rebuild one point per second between
stored points.

```python
from datetime import datetime, timedelta
from perfwatch.adaptive import delta_encode, delta_decode

t0 = datetime(2024, 1, 1)
series = [(t0 + timedelta(seconds=i), v) for i, v in enumerate([1.0, 3.0, 2.0])]
assert delta_decode(delta_encode(series)) == series
```

## Storage and export

`perfwatch.storage.DataStorage` works as a context manager.

- `initialize(db_path)` opens the SQLite database and creates its tables,
  making the directory first if needed.
- `store_sample(kind, value, timestamp)` writes one sample row; it raises
  `RuntimeError` before `initialize`. A `GPU` sample also updates the
  latest snapshot.
- `store_data(cpu, memory, disk, upload, download)` keeps a bounded
  in-memory history of `SystemData` snapshots (3600 by default).
- `export_system_data(filename, start, end)` writes that history as CSV.
- `clear()` empties the history and `close()` closes the database.

`perfwatch.exporter.export_to_csv(db_path, csv_path, start, end)` writes
the stored samples as CSV with the columns `type`, `value` and
`timestamp`, and returns the number of rows. The time range applies only
when both `start` and `end` are given.

## What it does not do

- There is no command-line program and no graphical display; the package
  is a library to build those on.
- It reads only Linux `/proc` files for CPU, memory, disk, network and
  process figures.
- It does not run GPU tools; GPU data comes from the probe or text you
  supply.
- It does not terminate or otherwise act on processes.