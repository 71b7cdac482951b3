"""
Visualization utilities for CPNMON.

Renders a net definition together with a marking as a Graphviz DOT
graph (places as circles labelled with their tokens, transitions as
boxes, arcs labelled with their token patterns), and a marking as an
ASCII table.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List, Optional

from cpnmon.core.marking import Marking
from cpnmon.utils.net_reader import NetDefinition


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class NetVisualizer:
    """
    Visualizer for a net and one of its markings.

    Attributes:
        net: The net definition to draw.
        marking: Marking shown in the places (default: the initial marking).
    """

    def __init__(self, net: NetDefinition, marking: Optional[Marking] = None) -> None:
        self.net = net
        self.marking = marking if marking is not None else net.initial_marking

    def to_dot(self) -> str:
        """
        Generate DOT format string for Graphviz rendering.

        Returns:
            A DOT format string.
        """
        lines: List[str] = ["digraph CPN {"]
        lines.append("  rankdir=LR;")

        for place in self.net.all_places():
            multiset = self.marking.get(place)
            tokens = "\\n".join(
                _dot_escape(f"{token} x{count}") for token, count in multiset.items()
            )
            label = _dot_escape(place)
            if tokens:
                label += f"\\n{tokens}"
            fill = "lightblue" if not multiset.is_empty() else "white"
            lines.append(
                f'  "p:{_dot_escape(place)}" [shape=circle, style=filled, '
                f'fillcolor={fill}, label="{label}"];'
            )

        for tid, transition in self.net.transitions.items():
            lines.append(
                f'  "t:{_dot_escape(tid)}" [shape=box, style=filled, '
                f'fillcolor=lightyellow, label="{_dot_escape(tid)}"];'
            )
            for arc in transition.pre:
                lines.append(
                    f'  "p:{_dot_escape(arc.place)}" -> "t:{_dot_escape(tid)}" '
                    f'[label="{_dot_escape(str(arc.pattern))}"];'
                )
            for arc in transition.post:
                lines.append(
                    f'  "t:{_dot_escape(tid)}" -> "p:{_dot_escape(arc.place)}" '
                    f'[label="{_dot_escape(str(arc.pattern))}"];'
                )

        lines.append("}")
        return "\n".join(lines)

    def to_ascii(self, max_width: int = 80) -> str:
        """
        Generate an ASCII table of the marking.

        Args:
            max_width: Maximum line width.

        Returns:
            ASCII table string.
        """
        lines: List[str] = ["=== Marking ==="]
        places = self.net.all_places()
        width = max((len(p) for p in places), default=0)
        for place in places:
            multiset = self.marking.get(place)
            tokens = ", ".join(f"{t} x{c}" for t, c in multiset.items()) or "(empty)"
            line = f"{place.ljust(width)} | {tokens}"
            if len(line) > max_width:
                line = line[: max_width - 3] + "..."
            lines.append(line)
        lines.append(f"hash: {self.marking.digest()}")
        return "\n".join(lines)

    def save_dot(self, filepath: Path) -> None:
        """Save DOT format to a file."""
        Path(filepath).write_text(self.to_dot(), encoding="utf-8")

    def save_png(self, filepath: Path) -> None:
        """
        Render the net to an image using Graphviz.

        The output format follows the file suffix (``.png``, ``.svg``,
        ``.pdf``).

        Raises:
            RuntimeError: If Graphviz is missing or fails.
        """
        filepath = Path(filepath)
        fmt = filepath.suffix.lstrip(".").lower() or "png"
        try:
            result = subprocess.run(
                ["dot", f"-T{fmt}", "-o", str(filepath)],
                input=self.to_dot(),
                capture_output=True,
                text=True,
                timeout=30,
            )
            if result.returncode != 0:
                raise RuntimeError(f"Graphviz error: {result.stderr}")
        except FileNotFoundError:
            raise RuntimeError(
                "Graphviz 'dot' command not found. " "Install Graphviz to render images."
            )
