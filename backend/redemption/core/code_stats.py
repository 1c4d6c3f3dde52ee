"""Code Stats — pure summary of per-status counts and recent batches.

Invariants:
    - Inputs are already scoped by the caller (no IO, no DB)
    - Missing statuses count as 0; total is the sum of all statuses
    - recent_batches keeps caller order, truncated to `limit`
"""

from redemption.core.domain_types import CodeStatus


def compute_code_stats(
    status_counts: dict[str, int], recent_batches: list[dict], limit: int = 10,
) -> dict:
    """Summarize counts. Pure, no IO."""
    unredeemed = status_counts.get(CodeStatus.UNREDEEMED.value, 0)
    redeemed = status_counts.get(CodeStatus.REDEEMED.value, 0)
    return {
        "total_count": sum(status_counts.values()),
        "unredeemed_count": unredeemed,
        "redeemed_count": redeemed,
        "by_status": [
            {"status": status, "count": count}
            for status, count in sorted(status_counts.items())
        ],
        "recent_batches": recent_batches[:limit],
    }
