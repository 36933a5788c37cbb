#!/usr/bin/env python3
"""
indexbench Quickstart Example
=============================

This example demonstrates the basic usage of indexbench:
1. Build an orchestrator from the environment
2. Compare a collection scan with a single-field index
3. Print latency and plan diagnostics for both legs

Prerequisites:
    pip install -e .

    # Configure .env with:
    # MONGODB_URI=mongodb://localhost:27017
    # MONGODB_DATABASE=index_benchmark
    # (products_1m and products_10m must already be populated)

Run:
    python examples/01_quickstart.py
"""

import asyncio

# Add src to path for development
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from indexbench import create_orchestrator


async def main() -> None:
    """No index vs one index on the small collection."""
    print("=" * 60)
    print("indexbench Quickstart")
    print("=" * 60)

    orchestrator = create_orchestrator()

    print("\n1. Collection statistics...")
    stats = await orchestrator.collection_statistics()
    for name, count in stats.collections.items():
        print(f"   {name}: {count:,} documents")

    print("\n2. Running scenario1 (no index vs {category: 1})...")
    response = await orchestrator.run(
        "scenario1",
        {
            "filter": {"category": "Electronics"},
            "index": {"category": 1},
            "data_size": "1m",
        },
    )

    if not response.success:
        print(f"   ✗ {response.error}")
        await orchestrator.gateway.close()
        return

    print("-" * 60)
    for leg_name, leg in response.result.legs.items():
        diag = leg.diagnostics
        print(
            f"{leg_name:>10}: {leg.execution_time_ms} ms avg, "
            f"{diag.stage}, docsExamined={diag.docs_examined:,}, returned={leg.result_count}"
        )
    print("-" * 60)

    await orchestrator.gateway.close()
    print("\n✓ Quickstart complete!")


if __name__ == "__main__":
    asyncio.run(main())
