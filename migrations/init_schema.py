#!/usr/bin/env python3
"""
Supabase Schema Verification Script

Run ONCE after applying migrations/init_schema.sql in the Supabase SQL editor.

Usage:
    python -m migrations.init_schema

This script:
1. Checks the `emails` table is reachable
2. Connects to the vector index (table + credentials)
3. Reports email / processed counts for an optional user
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import settings
from dependencies import build_container

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).with_suffix(".sql")


async def main(user_id: str = None):
    """Verify the Supabase schema"""
    logger.info("=" * 80)
    logger.info("🚀 SUPABASE SCHEMA CHECK")
    logger.info("=" * 80)

    container = build_container(settings)

    # Step 1: emails table
    logger.info("Step 1: Checking emails table...")
    await container.store.find(user_id or "schema-check", limit=1)
    logger.info("✅ emails table reachable")

    # Step 2: vector index
    logger.info(f"Step 2: Connecting to vector index '{settings.vector_index_name}'...")
    await container.index_manager.get_or_connect()
    logger.info("✅ Vector index reachable")

    # Step 3: counts
    if user_id:
        total = await container.store.count(user_id)
        processed = await container.store.count(user_id, {"embeddings_generated": True})
        logger.info(f"📊 User {user_id[:8]}: {total} emails, {processed} embedded")

    logger.info("=" * 80)
    logger.info("✅ Schema ready")
    return 0


if __name__ == "__main__":
    try:
        exit_code = asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"\n❌ Schema check failed: {e}", exc_info=True)
        logger.error(f"   Apply {SCHEMA_FILE} in the Supabase SQL editor first.")
        sys.exit(1)
