"""
Scenario Loader for the CPU Scheduling & Deadlock Simulator.

Loads and validates text scenario files:

    [1,2] [2,1]
    0 0 1 CPU{5,R[1,1],3,F[1,1]} IO{4} CPU{2}
    1 2 0 CPU{2}

Line 1 declares resources as [id,instances] (anything between declarations
is ignored). Every following non-blank line is a process:
`pid arrival priority` followed by CPU{...} and IO{duration} bursts. CPU
items are an Exec duration, R[id,amount] (request) or F[id,amount]
(release). Malformed input raises ScenarioLoadError.
"""

import re
from typing import Dict, List

from models.process import Process, Burst, Exec, Request, Release, Operation
from models.resource import Resource
from models.system_state import SystemState


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


_RESOURCE_RE = re.compile(r"\[\s*(-?\d+)\s*,\s*(-?\d+)\s*\]")
_HEADER_RE = re.compile(r"^\s*(-?\d+)\s+(-?\d+)\s+(-?\d+)(.*)$")
_BURST_RE = re.compile(r"\s*(CPU|IO)\s*\{([^{}]*)\}")
_EXEC_RE = re.compile(r"^\d+$")
_RESOURCE_OP_RE = re.compile(r"^([RF])\s*\[\s*(-?\d+)\s*,\s*(-?\d+)\s*\]$")


def load_scenario(file_path: str) -> SystemState:
    """
    Load scenario from a text file.

    Args:
        file_path: Path to scenario file

    Returns:
        SystemState initialized with processes and resources

    Raises:
        ScenarioLoadError: If file cannot be read or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            text = f.read()
    except FileNotFoundError:
        raise ScenarioLoadError(f"Cannot open file {file_path}: not found")
    except OSError as e:
        raise ScenarioLoadError(f"Cannot open file {file_path}: {e}")

    return parse_scenario(text)


def parse_scenario(text: str) -> SystemState:
    """
    Parse scenario text into a SystemState.

    Raises:
        ScenarioLoadError: If the text is invalid
    """
    lines = text.splitlines()
    if not lines or not text.strip():
        raise ScenarioLoadError("Scenario is empty")

    resources = parse_resources(lines[0])

    processes = []
    seen_pids = set()
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        process = parse_process_line(line, resources, line_number)
        if process.pid in seen_pids:
            raise ScenarioLoadError(f"Line {line_number}: duplicate process id {process.pid}")
        seen_pids.add(process.pid)
        processes.append(process)

    return SystemState(processes=processes, resources=resources)


def parse_resources(line: str) -> Dict[int, Resource]:
    """
    Parse the resource declaration line.

    Returns:
        Resource id -> Resource with all instances available
    """
    matches = _RESOURCE_RE.findall(line)
    if len(matches) != line.count('[') or len(matches) != line.count(']'):
        raise ScenarioLoadError(f"Line 1: malformed resource declaration in '{line.strip()}'")

    resources = {}
    for raw_id, raw_total in matches:
        resource_id, total = int(raw_id), int(raw_total)
        if resource_id in resources:
            raise ScenarioLoadError(f"Line 1: resource R{resource_id} declared twice")
        if total < 0:
            raise ScenarioLoadError(f"Line 1: resource R{resource_id} has negative instances")
        resources[resource_id] = Resource.with_instances(resource_id, total)

    return dict(sorted(resources.items()))


def parse_process_line(line: str, resources: Dict[int, Resource], line_number: int = 0) -> Process:
    """
    Parse one process line: `pid arrival priority` followed by bursts.

    Args:
        line: Process line
        resources: Declared resources (for validating R/F items)
        line_number: Line number for error messages

    Returns:
        Process in NEW state
    """
    header = _HEADER_RE.match(line)
    if not header:
        raise ScenarioLoadError(
            f"Line {line_number}: expected 'pid arrival priority' at start of '{line.strip()}'"
        )

    pid, arrival_time, priority = (int(header.group(i)) for i in (1, 2, 3))
    if arrival_time < 0:
        raise ScenarioLoadError(f"Line {line_number}: P{pid} has negative arrival time")
    if priority < 0:
        raise ScenarioLoadError(f"Line {line_number}: P{pid} has negative priority")

    bursts = _parse_bursts(header.group(4), resources, line_number)

    return Process(pid=pid, arrival_time=arrival_time, priority=priority, bursts=bursts)


def _parse_bursts(text: str, resources: Dict[int, Resource], line_number: int) -> List[Burst]:
    bursts = []
    pos = 0

    while text[pos:].strip():
        match = _BURST_RE.match(text, pos)
        if not match:
            token = text[pos:].split()[0]
            raise ScenarioLoadError(f"Line {line_number}: unrecognized burst '{token}'")

        kind, content = match.group(1), match.group(2)
        if kind == "CPU":
            operations = [
                _parse_cpu_item(item, resources, line_number)
                for item in _split_items(content, line_number)
            ]
            bursts.append(Burst(True, operations))
        else:
            duration = content.strip()
            if not _EXEC_RE.match(duration):
                raise ScenarioLoadError(f"Line {line_number}: invalid IO duration '{duration}'")
            bursts.append(Burst.io(int(duration)))

        pos = match.end()

    return bursts


def _split_items(content: str, line_number: int) -> List[str]:
    """Split CPU burst content on commas outside square brackets."""
    if not content.strip():
        return []

    items = []
    current = ""
    depth = 0
    for ch in content:
        if ch == '[':
            depth += 1
        elif ch == ']':
            depth -= 1
            if depth < 0:
                raise ScenarioLoadError(f"Line {line_number}: unbalanced ']' in CPU{{{content}}}")

        if ch == ',' and depth == 0:
            items.append(current.strip())
            current = ""
        else:
            current += ch

    if depth != 0:
        raise ScenarioLoadError(f"Line {line_number}: unbalanced '[' in CPU{{{content}}}")
    items.append(current.strip())

    if any(not item for item in items):
        raise ScenarioLoadError(f"Line {line_number}: empty item in CPU{{{content}}}")
    return items


def _parse_cpu_item(item: str, resources: Dict[int, Resource], line_number: int) -> Operation:
    if _EXEC_RE.match(item):
        return Exec(int(item))

    match = _RESOURCE_OP_RE.match(item)
    if not match:
        raise ScenarioLoadError(f"Line {line_number}: invalid CPU item '{item}'")

    kind, resource_id, amount = match.group(1), int(match.group(2)), int(match.group(3))
    if resource_id not in resources:
        raise ScenarioLoadError(f"Line {line_number}: '{item}' refers to undeclared resource R{resource_id}")
    if amount <= 0:
        raise ScenarioLoadError(f"Line {line_number}: '{item}' amount must be positive")

    if kind == "R":
        return Request(resource_id, amount)
    return Release(resource_id, amount)
