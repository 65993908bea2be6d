#!/usr/bin/env python3
"""
Seed Test Emails

Inserts a few realistic emails into Supabase for a user, embeds them, and
runs sample questions end to end.

Usage:
    python -m scripts.seed_emails <user_id>
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import settings
from dependencies import build_container
from services.database import EMAILS_TABLE


def _test_emails(user_id: str):
    now = datetime.now(timezone.utc)
    return [
        {
            'user_id': user_id,
            'message_id': f'seed_{user_id[:8]}_budget',
            'thread_id': 'seed_thread_budget',
            'sender': {'email': 'ana@example.com', 'name': 'Ana Lopez'},
            'recipients': [{'email': 'me@example.com', 'name': 'Me'}],
            'subject': 'Q3 Budget - final numbers',
            'body': 'Hi! Attached are the final Q3 budget numbers. Marketing is at $42K, '
                    'engineering at $120K. Can you confirm by Friday?',
            'snippet': 'Attached are the final Q3 budget numbers. Can you confirm by Friday?',
            'date': (now - timedelta(days=1)).isoformat(),
            'is_read': False,
        },
        {
            'user_id': user_id,
            'message_id': f'seed_{user_id[:8]}_offsite',
            'thread_id': 'seed_thread_offsite',
            'sender': {'email': 'mike.chen@example.com', 'name': 'Mike Chen'},
            'recipients': [{'email': 'me@example.com', 'name': 'Me'}],
            'subject': 'Team offsite in Lisbon',
            'body': 'The offsite is confirmed for October 14-16 in Lisbon. Flights are booked.',
            'snippet': 'The offsite is confirmed for October 14-16 in Lisbon.',
            'date': (now - timedelta(days=3)).isoformat(),
            'is_read': True,
        },
        {
            'user_id': user_id,
            'message_id': f'seed_{user_id[:8]}_outage',
            'thread_id': 'seed_thread_outage',
            'sender': {'email': 'alerts@example.com', 'name': 'Status Page'},
            'recipients': [{'email': 'me@example.com', 'name': 'Me'}],
            'subject': 'URGENT: API latency incident',
            'body': 'We are investigating elevated API latency in eu-west. Next update in 30 minutes.',
            'snippet': 'We are investigating elevated API latency in eu-west.',
            'date': (now - timedelta(hours=2)).isoformat(),
            'is_read': False,
        },
    ]


async def seed_emails(user_id: str):
    print("=" * 80)
    print("SEEDING TEST EMAILS")
    print("=" * 80)

    container = build_container(settings)

    rows = _test_emails(user_id)
    await asyncio.to_thread(
        lambda: container.store.db.client.table(EMAILS_TABLE)
        .upsert(rows, on_conflict='message_id')
        .execute()
    )
    print(f"✅ Stored {len(rows)} emails")

    result = await container.ingestion.ingest_unprocessed(user_id, limit=50)
    print(f"✅ {result.message}")

    for question in ["Do I have unread emails?", "What are the Q3 budget numbers?", "Where is the offsite?"]:
        answer = await container.composer.answer_question(user_id, question)
        print(f"\n❓ {question}")
        print(f"💬 {answer.answer}")
        print(f"📧 Sources: {[source.subject for source in answer.sources]}")

    print("\n" + "=" * 80)
    print("✅ SEEDING COMPLETE!")
    print("=" * 80)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: python -m scripts.seed_emails <user_id>")
        sys.exit(1)
    asyncio.run(seed_emails(sys.argv[1]))
