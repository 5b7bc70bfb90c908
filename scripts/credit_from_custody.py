#!/usr/bin/env python3
"""Credit funds already sitting in custody to a user's unified balance.

Use after a deposit confirmed on-chain but the credit step failed. The
existing channel is reused, so re-running only risks crediting twice.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv
load_dotenv()

from tempwallet.chains import get_chain_registry
from tempwallet.custody.factory import get_coordinator
from tempwallet.errors import WalletBackendError
from tempwallet.services import CustodyService
from tempwallet.storage.database import close_db, init_db
from tempwallet.wallet.factory import get_wallet_provider


async def credit(user_id: str, chain: str, asset: str, amount: str) -> int:
    await init_db()
    try:
        service = CustodyService(get_wallet_provider(), get_coordinator(), get_chain_registry())
        result = await service.credit_from_custody(user_id, chain, asset, amount)
    except WalletBackendError as e:
        print(f"Credit failed ({e.error_code}): {e.message}")
        return 1
    finally:
        await close_db()

    print(f"Credited {amount} {asset} to user {user_id}")
    print(f"Channel: {result['channel_id']}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 5:
        print("Usage: python credit_from_custody.py <user_id> <chain> <asset> <amount>")
        print("Example: python credit_from_custody.py user-42 base usdc 25.5")
        sys.exit(1)

    sys.exit(asyncio.run(credit(*sys.argv[1:5])))
