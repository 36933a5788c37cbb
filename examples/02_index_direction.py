#!/usr/bin/env python3
"""
Index Direction Example
=======================

Runs scenario5 on a sorted query: no index, an index matching the sort
direction and one in the opposite direction. Both indexes serve the sort;
the second one is walked backwards.

Afterwards a single-shot measurement shows the diagnostics of one query on its own.

Run:
    python examples/02_index_direction.py
"""

import asyncio

# Add src to path for development
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from indexbench import IndexSpec, create_orchestrator


async def main() -> None:
    print("=" * 60)
    print("Index direction: {price: -1} vs {price: 1}")
    print("=" * 60)

    orchestrator = create_orchestrator()
    try:
        response = await orchestrator.run(
            "scenario5",
            {
                "filter": {"category": "Electronics"},
                "sort": {"price": -1},
                "index1": {"price": -1},
                "index2": {"price": 1},
                "data_size": "1m",
            },
        )
        if not response.success:
            print(f"✗ {response.error}")
            return

        for name, text in response.result.mql.items():
            if text is not None:
                print(f"\n{name}:\n{text}")

        print("\n" + "-" * 60)
        for leg_name, leg in response.result.legs.items():
            diag = leg.diagnostics
            print(
                f"{leg_name:>8}: {leg.execution_time_ms:>5} ms  {diag.stage:<8} "
                f"index={diag.index_name or '-'} direction={diag.direction or '-'}"
            )

        print("\nSingle run with {price: 1} only:")
        single = await orchestrator.measure_once(
            "products_1m",
            {"category": "Electronics"},
            index=IndexSpec.from_mapping({"price": 1}),
        )
        print(f"   {single.execution_time_ms} ms, plan stage {single.diagnostics.winning_stage}")
    finally:
        await orchestrator.gateway.close()


if __name__ == "__main__":
    asyncio.run(main())
