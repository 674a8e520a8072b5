"""Console rendering for one-shot CLI commands."""

from typing import List, Sequence

from rpc_sentinel.config.schema import SentinelConfig
from rpc_sentinel.constants import SERVER_NAME, SERVER_VERSION
from rpc_sentinel.display.logging_config import secret_redaction_filter
from rpc_sentinel.probe.models import ProbeOutcome


def format_outcomes(outcomes: Sequence[ProbeOutcome]) -> str:
    """Render probe outcomes as a fixed-width table."""
    lines: List[str] = [
        f"{'ENDPOINT':<24s}  {'STATUS':<9s}  {'BLOCK':>12s}  {'LATENCY':>9s}  DETAIL",
        "─" * 90,
    ]
    for o in outcomes:
        status = "✅ up" if o.is_healthy else "❌ down"
        block = str(o.block_height) if o.block_height is not None else "-"
        if o.is_healthy:
            detail = ""
        else:
            reason = o.reason.value if o.reason else "unknown"
            detail = secret_redaction_filter.redact(f"{reason}: {o.error or ''}")
        lines.append(
            f"{o.endpoint:<24s}  {status:<9s}  {block:>12s}  {o.latency_ms:>7.0f}ms  {detail}"
        )
    healthy = sum(1 for o in outcomes if o.is_healthy)
    lines.append(f"\n{healthy}/{len(outcomes)} endpoint(s) healthy.")
    return "\n".join(lines)


def format_config_summary(config: SentinelConfig, cfg_fpath: str) -> str:
    """Render a short summary of a validated configuration."""
    lines = [
        f"{SERVER_NAME} v{SERVER_VERSION} — configuration OK: {cfg_fpath}",
        f"  interval:   {config.interval} minute(s)",
        f"  method:     {config.method}",
        f"  metrics:    {config.prometheus.address}",
        f"  timeout:    {config.probe.timeout:g}s (connect {config.probe.connect_timeout:g}s)",
        f"  endpoints:  {len(config.endpoints)}",
    ]
    for ep in config.endpoints:
        lines.append(f"    - {ep.name}: {secret_redaction_filter.redact(ep.url)}")
    return "\n".join(lines)
