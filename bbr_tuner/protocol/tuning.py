"""
Tuning Protocol - Tiers, directives and the rendered configuration document.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple, Union


Value = Union[int, str, Tuple[int, int, int]]

GENERATED_PREFIX = "# Generated: "


class Tier(IntEnum):
    """Hardware capacity buckets, ordered from smallest to largest."""
    ENTRY = 0
    LIGHT = 1
    STANDARD = 2
    HIGH_PERFORMANCE = 3
    ENTERPRISE = 4
    FLAGSHIP = 5

    @property
    def label(self) -> str:
        return _TIER_LABELS[self]


_TIER_LABELS = {
    Tier.ENTRY: "Entry",
    Tier.LIGHT: "Light",
    Tier.STANDARD: "Standard",
    Tier.HIGH_PERFORMANCE: "High-performance",
    Tier.ENTERPRISE: "Enterprise",
    Tier.FLAGSHIP: "Flagship",
}


class DirectiveGroup(IntEnum):
    """Logical groups, in the order they appear in the rendered file."""
    CONGESTION = 0
    BUFFERS = 1
    QUEUES = 2
    TCP = 3
    LIMITS = 4
    CONNTRACK = 5


def format_value(value: Value) -> str:
    """Render a directive value the way sysctl expects it on disk."""
    if isinstance(value, tuple):
        return " ".join(str(v) for v in value)
    return str(value)


def normalize_value(value: Optional[str]) -> Optional[str]:
    """Comparable form of a live or intended value (sysctl prints triples with tabs)."""
    if value is None:
        return None
    return " ".join(str(value).split()).lower()


@dataclass(frozen=True)
class Directive:
    """A single kernel parameter with the reason it is set."""
    key: str
    value: Value
    comment: str
    group: DirectiveGroup = DirectiveGroup.TCP

    @property
    def rendered_value(self) -> str:
        return format_value(self.value)

    def lines(self) -> List[str]:
        return [f"# {self.comment}", f"{self.key} = {self.rendered_value}"]


@dataclass
class ParameterSet:
    """Ordered mapping of parameter key -> Directive."""
    directives: Dict[str, Directive] = field(default_factory=dict)

    def add(self, directive: Directive) -> None:
        self.directives[directive.key] = directive

    def values(self) -> Dict[str, Value]:
        return {key: d.value for key, d in self.directives.items()}

    def keys(self) -> List[str]:
        return list(self.directives)

    def get(self, key: str) -> Optional[Directive]:
        return self.directives.get(key)

    def __getitem__(self, key: str) -> Directive:
        return self.directives[key]

    def __contains__(self, key: str) -> bool:
        return key in self.directives

    def __iter__(self) -> Iterator[Directive]:
        return iter(self.directives.values())

    def __len__(self) -> int:
        return len(self.directives)


@dataclass
class ConfigDocument:
    """
    The managed sysctl file: a header block followed by grouped directives.

    Each directive occupies two lines (comment, then key = value). Groups
    are separated by a blank line.
    """
    header: List[str]
    directives: List[Directive]

    def to_text(self) -> str:
        lines = list(self.header)
        previous_group = None
        for directive in self.directives:
            if directive.group != previous_group:
                lines.append("")
                previous_group = directive.group
            lines.extend(directive.lines())
        return "\n".join(lines) + "\n"

    def body_text(self) -> str:
        """File content without the generation timestamp line."""
        return "\n".join(
            line for line in self.to_text().splitlines()
            if not line.startswith(GENERATED_PREFIX)
        )

    def values(self) -> Dict[str, str]:
        return {d.key: d.rendered_value for d in self.directives}

    def get(self, key: str) -> Optional[Directive]:
        for directive in self.directives:
            if directive.key == key:
                return directive
        return None


@dataclass
class ApplyResult:
    """Outcome of reload + verification."""
    effective_values: Dict[str, Optional[str]]
    expected_values: Dict[str, str]
    success: bool

    @property
    def mismatches(self) -> Dict[str, Tuple[str, Optional[str]]]:
        """key -> (expected, actual) for every key that did not take effect."""
        return {
            key: (expected, self.effective_values.get(key))
            for key, expected in self.expected_values.items()
            if self.effective_values.get(key) is None
            or normalize_value(self.effective_values[key]) != normalize_value(expected)
        }
