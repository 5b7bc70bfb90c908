#!/usr/bin/env python3
"""Re-encrypt all stored wallet seeds under a new master key.

The current key is read from MASTER_KEY (.env is loaded). Seeds stored in
plaintext are encrypted with the new key. Set MASTER_KEY to the new key
before restarting the service.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv
load_dotenv()

from tempwallet.config import get_settings
from tempwallet.crypto import InvalidToken, generate_master_key, rotate_wallet_seeds
from tempwallet.errors import ConfigError
from tempwallet.storage.database import close_db, get_db, init_db
from tempwallet.storage.repository import WalletRepository


async def rotate(new_key: str) -> int:
    old_key = get_settings().master_key
    await init_db()
    try:
        async with get_db() as session:
            counts = await rotate_wallet_seeds(WalletRepository(session), new_key, old_key)
    except ConfigError as e:
        print(f"Rotation aborted: {e.message}")
        return 1
    except InvalidToken:
        print("Rotation aborted: MASTER_KEY does not decrypt the stored seeds")
        return 1
    finally:
        await close_db()

    print(f"Rotated: {counts['rotated']}, newly encrypted: {counts['encrypted']}")
    print("Now set MASTER_KEY to the new key and restart the service.")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python rotate_master_key.py <new_key | --generate>")
        sys.exit(1)

    key = sys.argv[1]
    if key == "--generate":
        key = generate_master_key()
        print(f"New MASTER_KEY: {key}")

    sys.exit(asyncio.run(rotate(key)))
