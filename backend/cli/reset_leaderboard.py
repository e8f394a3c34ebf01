#!/usr/bin/env python3
"""
Create the leaderboard schema and optionally wipe all scores.

The scores table and its rank index are (re)created in every case, so
this doubles as the setup step for a fresh PostgreSQL or SQLite store.

Usage:
    python backend/cli/reset_leaderboard.py --backend sqlite [--wipe] [--confirm]
"""

import os
import sys
import argparse

# Add parent directory to path to import database modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import database
import database_postgres


def _open(backend: str):
    if backend == "postgres":
        database_postgres.init_database()
        return database_postgres.get_connection(), "DATABASE_URL / PG* settings"
    database.init_database()
    return database.get_connection(), database.get_database_path()


def reset_leaderboard(backend: str = "sqlite", wipe: bool = False, confirm: bool = False) -> bool:
    """
    Ensure the schema exists and, with wipe=True, delete every score.

    Args:
        backend: 'sqlite' or 'postgres'
        wipe: Delete all rows from the scores table
        confirm: If True, skip confirmation prompt

    Returns:
        True if successful, False otherwise
    """
    if wipe and not confirm:
        print("=" * 70)
        print("⚠️  LEADERBOARD RESET WARNING ⚠️")
        print("=" * 70)
        print(f"Backend: {backend}")
        print("\nThis will DELETE ALL SCORES. The table and rank index are kept.")
        print("=" * 70)

        response = input("\nType 'RESET' to confirm: ")

        if response != 'RESET':
            print("❌ Reset cancelled")
            return False

    try:
        conn, location = _open(backend)
    except Exception as e:
        print(f"\n❌ Could not open {backend} store: {e}")
        return False

    print(f"✓ Schema ready ({backend}: {location})")
    if not wipe:
        conn.close()
        return True

    cursor = conn.cursor()
    try:
        cursor.execute("DELETE FROM scores")
        print(f"  ✓ Cleared scores: {cursor.rowcount} rows deleted")
        conn.commit()
        print("\n✅ Leaderboard reset complete!")
        return True

    except Exception as e:
        print(f"\n❌ Error resetting leaderboard: {e}")
        conn.rollback()
        return False

    finally:
        cursor.close()
        conn.close()


def main():
    parser = argparse.ArgumentParser(
        description="Create the leaderboard schema and optionally wipe all scores"
    )
    parser.add_argument(
        '--backend',
        choices=['sqlite', 'postgres'],
        default='sqlite',
        help="Which SQL store to prepare"
    )
    parser.add_argument(
        '--wipe',
        action='store_true',
        help="Delete all existing scores"
    )
    parser.add_argument(
        '--confirm',
        action='store_true',
        help="Skip confirmation prompt"
    )

    args = parser.parse_args()

    success = reset_leaderboard(backend=args.backend, wipe=args.wipe, confirm=args.confirm)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
