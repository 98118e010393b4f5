#!/usr/bin/env python3
"""
Drop cached provider data after availability was edited in the database.

Usage:
    python scripts/clear_provider_cache.py              # every provider entry
    python scripts/clear_provider_cache.py <provider_id>
"""

import argparse
import sys
from uuid import UUID

from dotenv import load_dotenv

load_dotenv()

from slotbook.core.redis_client import CacheManager, get_redis_client  # noqa: E402
from slotbook.repositories.providers import ProviderRepository  # noqa: E402


def main() -> int:
    """Clear provider cache entries."""
    parser = argparse.ArgumentParser(description="Clear cached provider availability")
    parser.add_argument("provider_id", nargs="?", type=UUID, help="Only clear this provider")
    args = parser.parse_args()

    cache = CacheManager(get_redis_client())

    if args.provider_id:
        # The active list embeds every provider's rules
        cache.delete(ProviderRepository._get_provider_cache_key(args.provider_id))
        cache.delete(ProviderRepository.ACTIVE_LIST_CACHE_KEY)
        print(f"✓ Cleared cache for provider {args.provider_id}")
        return 0

    deleted = cache.delete_pattern("provider:*")
    print(f"✓ Cleared {deleted} provider cache entries")
    return 0


if __name__ == "__main__":
    sys.exit(main())
