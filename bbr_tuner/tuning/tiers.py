"""
Parameter table - tier thresholds and scaled kernel parameters.

This is the only place tier boundaries and magnitudes live. Each row of
TIER_TABLE is (tier, inclusive upper bound in MB, scaled values); adding a
tier means adding a row. Everything here is pure and deterministic.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..protocol.tuning import (
    Tier,
    Directive,
    DirectiveGroup,
    ParameterSet,
    Value,
)


@dataclass(frozen=True)
class ScaledParameter:
    """A parameter whose magnitude depends on the tier."""
    key: str
    comment: str
    group: DirectiveGroup
    conditional: bool = False  # emitted only when the subsystem exists


@dataclass(frozen=True)
class TierRow:
    """One row of the parameter table."""
    tier: Tier
    upper_bound_mb: Optional[int]  # inclusive; None = unbounded
    values: Dict[str, Value]


CONNTRACK_KEY = "net.netfilter.nf_conntrack_max"
CONGESTION_KEY = "net.ipv4.tcp_congestion_control"
QDISC_KEY = "net.core.default_qdisc"


SCALED_PARAMETERS: Tuple[ScaledParameter, ...] = (
    ScaledParameter("net.core.rmem_max", "Maximum socket receive buffer (bytes)", DirectiveGroup.BUFFERS),
    ScaledParameter("net.core.wmem_max", "Maximum socket send buffer (bytes)", DirectiveGroup.BUFFERS),
    ScaledParameter("net.ipv4.tcp_rmem", "TCP receive buffer: min default max (bytes)", DirectiveGroup.BUFFERS),
    ScaledParameter("net.ipv4.tcp_wmem", "TCP send buffer: min default max (bytes)", DirectiveGroup.BUFFERS),
    ScaledParameter("net.core.somaxconn", "Listen backlog limit for accept queues", DirectiveGroup.QUEUES),
    ScaledParameter("net.core.netdev_max_backlog", "Packets queued on input when the NIC outpaces the kernel", DirectiveGroup.QUEUES),
    ScaledParameter("fs.file-max", "System-wide open file handle limit", DirectiveGroup.LIMITS),
    ScaledParameter(CONNTRACK_KEY, "Maximum tracked connections", DirectiveGroup.CONNTRACK, conditional=True),
)


def _row(tier, upper_bound_mb, buf, tcp_rmem, tcp_wmem, somaxconn, backlog, file_max, conntrack) -> TierRow:
    return TierRow(tier, upper_bound_mb, {
        "net.core.rmem_max": buf,
        "net.core.wmem_max": buf,
        "net.ipv4.tcp_rmem": tcp_rmem,
        "net.ipv4.tcp_wmem": tcp_wmem,
        "net.core.somaxconn": somaxconn,
        "net.core.netdev_max_backlog": backlog,
        "fs.file-max": file_max,
        CONNTRACK_KEY: conntrack,
    })


TIER_TABLE: Tuple[TierRow, ...] = (
    #    tier                   <=MB  rmem/wmem_max  tcp_rmem                      tcp_wmem                      somaxconn backlog file-max  conntrack
    _row(Tier.ENTRY,            512,  8388608,   (4096, 65536, 8388608),   (4096, 65536, 8388608),   32768, 16384,  262144,  131072),
    _row(Tier.LIGHT,            1024, 16777216,  (4096, 65536, 16777216),  (4096, 65536, 16777216),  49152, 24576,  524288,  262144),
    _row(Tier.STANDARD,         2048, 33554432,  (4096, 87380, 33554432),  (4096, 65536, 33554432),  65535, 32768,  1048576, 524288),
    _row(Tier.HIGH_PERFORMANCE, 4096, 67108864,  (4096, 87380, 67108864),  (4096, 65536, 67108864),  65535, 65536,  2097152, 1048576),
    _row(Tier.ENTERPRISE,       8192, 134217728, (4096, 87380, 134217728), (4096, 65536, 134217728), 65535, 131072, 4194304, 2097152),
    _row(Tier.FLAGSHIP,         None, 268435456, (4096, 87380, 268435456), (4096, 65536, 268435456), 65535, 262144, 8388608, 4194304),
)


ALWAYS_ON: Tuple[Directive, ...] = (
    Directive(QDISC_KEY, "fq", "Fair queueing qdisc, required for BBR pacing", DirectiveGroup.CONGESTION),
    Directive(CONGESTION_KEY, "bbr", "BBR congestion control", DirectiveGroup.CONGESTION),
    Directive("net.ipv4.tcp_tw_reuse", 1, "Reuse TIME_WAIT sockets for new outbound connections", DirectiveGroup.TCP),
    Directive("net.ipv4.tcp_fin_timeout", 30, "Seconds an orphaned connection stays in FIN_WAIT_2", DirectiveGroup.TCP),
    Directive("net.ipv4.tcp_keepalive_time", 600, "Idle seconds before the first keepalive probe", DirectiveGroup.TCP),
    Directive("net.ipv4.tcp_keepalive_intvl", 30, "Seconds between keepalive probes", DirectiveGroup.TCP),
    Directive("net.ipv4.tcp_keepalive_probes", 5, "Unanswered probes before the connection is dropped", DirectiveGroup.TCP),
    Directive("net.ipv4.tcp_syncookies", 1, "SYN cookies protect against SYN floods", DirectiveGroup.TCP),
    Directive("net.ipv4.tcp_max_syn_backlog", 8192, "Half-open connection queue length", DirectiveGroup.TCP),
    Directive("vm.swappiness", 10, "Prefer dropping page cache over swapping process memory", DirectiveGroup.LIMITS),
)


def select_tier(total_memory_mb: int) -> Tier:
    """
    Pick the tier for a memory size.

    Upper bounds are inclusive: exactly 512 MB is Entry, 513 MB is Light.
    """
    if total_memory_mb < 0:
        raise ValueError(f"Memory must be >= 0 MB, got {total_memory_mb}")

    for row in TIER_TABLE:
        if row.upper_bound_mb is None or total_memory_mb <= row.upper_bound_mb:
            return row.tier

    # validate_table() guarantees the last row is unbounded
    raise AssertionError("TIER_TABLE has no unbounded final row")


def tier_row(tier: Tier) -> TierRow:
    for row in TIER_TABLE:
        if row.tier == tier:
            return row
    raise KeyError(f"No table row for tier {tier!r}")


def tier_range(tier: Tier) -> str:
    """Human-readable memory range, e.g. '513-1024 MB' or '> 8192 MB'."""
    index = [row.tier for row in TIER_TABLE].index(tier)
    row = TIER_TABLE[index]
    lower = TIER_TABLE[index - 1].upper_bound_mb + 1 if index > 0 else 0
    if row.upper_bound_mb is None:
        return f"> {lower - 1} MB"
    return f"{lower}-{row.upper_bound_mb} MB"


def parameters_for(tier: Tier, include_conditional: bool = True) -> ParameterSet:
    """
    Scaled parameters for a tier.

    Args:
        tier: Selected tier
        include_conditional: Include parameters that depend on optional
            kernel subsystems (connection tracking)
    """
    row = tier_row(tier)
    params = ParameterSet()
    for param in SCALED_PARAMETERS:
        if param.conditional and not include_conditional:
            continue
        params.add(Directive(param.key, row.values[param.key], param.comment, param.group))
    return params


def _as_tuple(value: Value) -> Tuple[int, ...]:
    return value if isinstance(value, tuple) else (value,)


def validate_table() -> List[str]:
    """
    Check the table's structural invariants.

    Returns:
        List of violations (empty if the table is consistent)
    """
    errors = []
    expected_keys = {param.key for param in SCALED_PARAMETERS}

    if [row.tier for row in TIER_TABLE] != sorted(Tier):
        errors.append("Rows must cover every tier exactly once, in tier order")

    if TIER_TABLE and TIER_TABLE[-1].upper_bound_mb is not None:
        errors.append("Last row must be unbounded")

    bounds = [row.upper_bound_mb for row in TIER_TABLE[:-1]]
    if any(b is None for b in bounds):
        errors.append("Only the last row may be unbounded")
    elif bounds != sorted(set(bounds)):
        errors.append(f"Upper bounds must be strictly increasing: {bounds}")

    for row in TIER_TABLE:
        if set(row.values) != expected_keys:
            errors.append(f"{row.tier.label}: keys differ from SCALED_PARAMETERS")

    for lower, upper in zip(TIER_TABLE, TIER_TABLE[1:]):
        for key in expected_keys & set(lower.values) & set(upper.values):
            a, b = _as_tuple(lower.values[key]), _as_tuple(upper.values[key])
            if len(a) != len(b) or any(x > y for x, y in zip(a, b)):
                errors.append(
                    f"{key} decreases from {lower.tier.label} to {upper.tier.label}"
                )

    return errors
