#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the storage backends and the identity provider are reachable.
Usage: python scripts/check_connections.py [--init]

--init also creates the indexes / tables for the configured storage backend
and reports how many students and applications it holds.
"""
import sys

import httpx

from careerhub.core.config import get_settings
from careerhub.db.postgres import test_postgres_connection
from careerhub.db.mongodb import test_mongo_connection
from careerhub.stores import build_stores, init_storage


def check_identity_provider(settings) -> bool:
    try:
        response = httpx.get(
            f"{settings.supabase_url.rstrip('/')}/auth/v1/health",
            headers={"apikey": settings.supabase_anon_key},
            timeout=settings.backend_timeout_seconds,
        )
    except httpx.RequestError:
        return False
    return response.status_code == 200


def pending_applications(stores) -> list:
    pending = []
    for college in stores.colleges.search(verified_only=False):
        pending += stores.applications.list_for_college(college.id, "pending")
    return pending


def main():
    settings = get_settings()
    print("=" * 50)
    print("CAREERHUB - CONNECTION CHECK")
    print(f"Storage backend: {settings.storage_backend}")
    print("=" * 50)

    print("\n[1] PostgreSQL...")
    print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    print("    CONNECTED" if test_postgres_connection() else "    FAILED")

    print("\n[2] MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    print("    CONNECTED" if test_mongo_connection() else "    FAILED")

    print("\n[3] Identity provider (Supabase)...")
    print(f"    URL: {settings.supabase_url}")
    print("    REACHABLE" if check_identity_provider(settings) else "    FAILED")

    if "--init" in sys.argv:
        print("\n[4] Initialising storage...")
        init_storage(settings)
        stores = build_stores(settings, service=True)
        print(f"    Students: {len(stores.students.list())}")
        print(f"    Pending applications: {len(pending_applications(stores))}")
        print("    DONE")

    print("\n" + "=" * 50)


if __name__ == "__main__":
    main()
