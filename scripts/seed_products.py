#!/usr/bin/env python3
"""
Seed products into the ERP backend from a JSON catalogue.
The file may hold a list of products or an object with a "products" list.
Each entry is validated before it is sent; invalid entries and entries the
backend rejects are skipped and reported.

Usage:
    python scripts/seed_products.py --file catalogue.json --email admin@warehouse.com --password admin123
"""
import json
import argparse
import sys
import os

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from pydantic import ValidationError

from erp_admin.adapters.api_client import ApiClient, ApiError
from erp_admin.adapters.credentials import MemoryCredentialStore
from erp_admin.config import settings
from erp_admin.repositories.product_repo import ProductRepository
from erp_admin.repositories.query_cache import QueryCache
from erp_admin.services.auth_service import AuthService
from erp_admin.utils.log import get_logger
from erp_admin.utils.validation import format_validation_errors

log = get_logger("seed")

DEFAULT_SOURCE = os.path.join(os.path.dirname(__file__), "catalogue.json")


def load_entries(path: str):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")

    if isinstance(data, dict):
        data = data.get("products") or []
    if not isinstance(data, list):
        return []
    return [e for e in data if isinstance(e, dict)]


def seed(entries, repo: ProductRepository):
    """Create each entry through the repository. Returns (created, skipped)."""
    created = skipped = 0
    for i, entry in enumerate(entries):
        label = entry.get("name") or f"entry {i}"
        try:
            repo.create(entry)
        except ValidationError as e:
            log.warning(f"skip {label}: {'; '.join(format_validation_errors(e))}")
            skipped += 1
            continue
        except ApiError as e:
            log.warning(f"skip {label}: backend said {e.status} {e.message}")
            skipped += 1
            continue
        created += 1
    return created, skipped


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=DEFAULT_SOURCE, help="Path to a product catalogue JSON file")
    parser.add_argument("--base-url", default=settings.API_BASE_URL)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()
    if not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)

    store = MemoryCredentialStore()
    client = ApiClient(args.base_url, store, timeout=settings.API_TIMEOUT_SECONDS)
    AuthService(client, store).login(args.email, args.password)
    created, skipped = seed(load_entries(args.file), ProductRepository(client, QueryCache()))
    print("Seeded products:", created, "skipped:", skipped)
