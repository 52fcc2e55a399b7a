"""Parsers for the output of GPU query tools (nvidia-smi, wmic, dxdiag, rocm-smi, lspci)."""

from __future__ import annotations

import re
from dataclasses import dataclass

UNKNOWN_DRIVER = "未知"
NO_GPU_NAME = "未检测到"
NO_DRIVER = "N/A"

_MIB = 1024 * 1024
_DISCRETE = ("nvidia", "amd", "radeon")
_INTEGRATED = ("intel", "uhd", "hd graphics", "iris")
_VIRTUAL = ("microsoft basic display", "remote display", "vnc")

_CARD_NAME_RE = re.compile(r"Card name: (.+)")
_DRIVER_VERSION_RE = re.compile(r"Driver Version: (.+)")


@dataclass(frozen=True)
class GpuInfo:
    """Identity of a detected GPU."""

    name: str
    driver_version: str


@dataclass(frozen=True)
class GpuStats:
    """One reading of GPU load; memory figures are in bytes."""

    usage: float = 0.0
    temperature: float = 0.0
    memory_used: int = 0
    memory_total: int = 0


def _contains_any(text: str, words: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in words)


def _after_first_colon(line: str) -> str:
    return line.partition(":")[2].strip()


def _to_float(text: str) -> float:
    try:
        return float(text.strip())
    except ValueError:
        return 0.0


def _to_unsigned(text: str) -> int:
    try:
        number = int(text.strip())
    except ValueError:
        return 0
    return number if number >= 0 else 0


def parse_nvidia_query(output: str) -> GpuInfo | None:
    """Parse ``nvidia-smi --query-gpu=name,driver_version --format=csv,noheader``."""
    text = output.strip()
    if not text:
        return None
    parts = text.split(",")
    if len(parts) < 2:
        return None
    return GpuInfo(name=parts[0].strip(), driver_version=parts[1].strip())


def parse_wmic_csv(output: str) -> GpuInfo | None:
    """Pick the best adapter from wmic video-controller CSV, preferring discrete GPUs.

    Each data row is read as memory, driver version, name, ...; the first line
    is the header.
    """
    best_name = ""
    best_driver = ""
    best_memory = 0
    for raw in output.split("\n")[1:]:
        line = raw.strip()
        if not line:
            continue
        parts = line.split(",")
        if len(parts) < 4:
            continue
        name = parts[2].strip()
        driver = parts[1].strip()
        if not name or _contains_any(name, _VIRTUAL):
            continue
        memory = _to_unsigned(parts[0])

        best_is_discrete = _contains_any(best_name, _DISCRETE)
        if _contains_any(name, _DISCRETE):
            replace = not best_name or memory > best_memory or not best_is_discrete
        elif (_contains_any(name, _INTEGRATED) or not best_name) and not best_is_discrete:
            replace = not best_name or memory > best_memory
        else:
            replace = False
        if replace:
            best_name, best_driver, best_memory = name, driver, memory

    if not best_name:
        return None
    return GpuInfo(name=best_name, driver_version=best_driver)


def parse_dxdiag(content: str) -> GpuInfo | None:
    """Read the first card name and driver version from a dxdiag text report."""
    name_match = _CARD_NAME_RE.search(content)
    if name_match is None:
        return None
    driver_match = _DRIVER_VERSION_RE.search(content)
    driver = driver_match.group(1).strip() if driver_match else UNKNOWN_DRIVER
    return GpuInfo(name=name_match.group(1).strip(), driver_version=driver)


def parse_rocm_smi(output: str) -> GpuInfo | None:
    """Parse ``rocm-smi --showproductname --showdriverversion`` output."""
    name = ""
    driver = ""
    for line in output.strip().split("\n"):
        if "GPU Product Name" in line:
            name = _after_first_colon(line)
        elif "Driver Version" in line:
            driver = _after_first_colon(line)
    if not name:
        return None
    return GpuInfo(name=name, driver_version=driver)


def parse_lspci(output: str) -> GpuInfo | None:
    """Find the first display controller in ``lspci -v`` output and its driver."""
    lines = output.strip().split("\n")
    for index, line in enumerate(lines):
        if "VGA compatible controller" not in line and "3D controller" not in line:
            continue
        name = _after_first_colon(line)
        driver = ""
        for detail in lines[index + 1:index + 10]:
            if "Kernel driver in use" in detail or "Module" in detail:
                driver = _after_first_colon(detail)
                break
        if not name:
            return None
        return GpuInfo(name=name, driver_version=driver or UNKNOWN_DRIVER)
    return None


def parse_nvidia_stats(output: str) -> GpuStats | None:
    """Parse utilisation, temperature, used and total memory (MiB) from nvidia-smi.

    Fields that cannot be read count as zero; fewer than four fields give None.
    """
    values = output.strip().split(",")
    if len(values) < 4:
        return None
    return GpuStats(
        usage=_to_float(values[0]),
        temperature=_to_float(values[1]),
        memory_used=_to_unsigned(values[2]) * _MIB,
        memory_total=_to_unsigned(values[3]) * _MIB,
    )