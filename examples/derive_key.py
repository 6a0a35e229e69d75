#!/usr/bin/env python3
"""Basic pacedkdf example.

This example derives a key in the three supported ways: the step function,
the coroutine driver and the callback driver, while a ticker task shows the
event loop stays responsive.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add the parent directory to the path so we can import pacedkdf
sys.path.insert(0, str(Path(__file__).parent.parent))

from pacedkdf import PBKDF2, DerivationConfig, SchedulingProfile
from pacedkdf.crypto import CancellationToken, DerivationCancelledError, Running


async def ticker(stop: asyncio.Event) -> int:
    ticks = 0
    while not stop.is_set():
        ticks += 1
        await asyncio.sleep(0)
    return ticks


async def basic_example():
    """Run a basic example of pacedkdf usage."""
    print("pacedkdf basic example")
    print("=" * 40)

    # Example 1: Driving the state machine by hand
    print("\n1. Stepping a derivation manually...")
    engine = PBKDF2("password", "salt", 2, 20)
    result = engine.step()
    while isinstance(result, Running):
        result = engine.step()
    print(f"   ✓ Key: {result.key_hex}")

    # Example 2: Coroutine driver alongside other work
    print("\n2. Deriving with the coroutine driver...")
    stop = asyncio.Event()
    tick_task = asyncio.create_task(ticker(stop))
    config = DerivationConfig.for_profile(SchedulingProfile.BALANCED)
    result = await PBKDF2("password", "salt", 4096, 20, config=config).derive()
    stop.set()
    print(f"   ✓ Key: {result.key_hex} in {result.elapsed_ms} ms")
    print(f"   ✓ Event loop ticked {await tick_task} times meanwhile")

    # Example 3: Callback driver
    print("\n3. Deriving with progress and completion callbacks...")
    done = asyncio.get_running_loop().create_future()
    engine = PBKDF2("passwordPASSWORDpassword", "saltSALTsaltSALTsaltSALTsaltSALTsalt", 4096, 25)
    engine.derive_key(
        lambda fraction: print(f"   … {fraction:.0%}") if fraction in (0.5, 1.0) else None,
        lambda key_hex, elapsed_ms: done.set_result((key_hex, elapsed_ms)),
    )
    key_hex, elapsed_ms = await done
    print(f"   ✓ Key: {key_hex} in {elapsed_ms} ms")

    # Example 4: Cancellation
    print("\n4. Cancelling a long derivation...")
    token = CancellationToken()
    engine = PBKDF2("password", "salt", 1_000_000, 20)
    asyncio.get_running_loop().call_later(0.05, token.cancel)
    try:
        await engine.derive(cancel_token=token)
    except DerivationCancelledError:
        print(f"   ✓ Cancelled at {engine.progress:.2%}")

    print("\nBasic example completed successfully!")


if __name__ == "__main__":
    # Run the example
    logging.basicConfig(level=logging.INFO)
    asyncio.run(basic_example())
