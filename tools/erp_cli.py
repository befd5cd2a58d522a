import os
import sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import argparse
import json

import requests
from pydantic import ValidationError

from erp_admin.adapters.api_client import ApiClient, ApiError
from erp_admin.adapters.credentials import CredentialStore, FileCredentialStore
from erp_admin.config import settings
from erp_admin.repositories.product_repo import ProductRepository
from erp_admin.repositories.query_cache import QueryCache
from erp_admin.services.auth_service import AuthService, AuthServiceException
from erp_admin.utils.validation import format_validation_errors


def build_parser():
    parser = argparse.ArgumentParser(description="Warehouse ERP command line client.")
    parser.add_argument("--base-url", default=settings.API_BASE_URL)
    parser.add_argument("--credentials", default=settings.CREDENTIALS_FILE, help="credential file path")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login")
    login.add_argument("--email", required=True)
    login.add_argument("--password", required=True)

    sub.add_parser("logout")
    sub.add_parser("whoami")

    products = sub.add_parser("products")
    psub = products.add_subparsers(dest="action", required=True)
    pl = psub.add_parser("list")
    pl.add_argument("--search", default="")
    pl.add_argument("--page", type=int, default=1)
    pl.add_argument("--limit", type=int, default=settings.PRODUCTS_PAGE_SIZE)
    ps = psub.add_parser("show")
    ps.add_argument("id")
    pd = psub.add_parser("delete")
    pd.add_argument("id")
    pd.add_argument("--yes", action="store_true", help="confirm deletion")
    return parser


def cmd_login(args, client, store):
    user = AuthService(client, store).login(args.email, args.password)
    print(f"Logged in as {user.display_name}")
    return 0


def cmd_logout(args, client, store):
    AuthService(client, store).logout()
    print("Logged out")
    return 0


def cmd_whoami(args, client, store):
    user = AuthService(client, store).current_user()
    if user is None:
        print("Not logged in")
        return 1
    roles = ", ".join(user.roles) or "-"
    print(f"{user.display_name} <{user.email}> roles: {roles}")
    return 0


def cmd_products(args, client, store):
    if not store.access_token:
        print("Not logged in; run `login` first", file=sys.stderr)
        return 1
    repo = ProductRepository(client, QueryCache(), page_size=settings.PRODUCTS_PAGE_SIZE)

    if args.action == "list":
        page = repo.list(search=args.search, page=args.page, limit=args.limit)
        for p in page.items:
            skus = ",".join(s.sku_code for s in p.skus)
            status = "active" if p.is_active else "inactive"
            print(f"{p.id}\t{p.name}\t{skus}\t{p.total_stock}\t{status}")
        print(f"page {page.meta.page}/{page.meta.total_pages} ({page.meta.total} products)")
        return 0

    if args.action == "show":
        product = repo.get_by_id(args.id)
        if product is None:
            print("Product not found", file=sys.stderr)
            return 1
        print(json.dumps(product.model_dump(by_alias=True, mode="json"), indent=2))
        return 0

    if not args.yes:
        print("Refusing to delete without --yes", file=sys.stderr)
        return 2
    repo.delete(args.id)
    print(f"Deleted {args.id}")
    return 0


COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "products": cmd_products,
}


def main(argv=None, store: CredentialStore = None, session: requests.Session = None):
    args = build_parser().parse_args(argv)
    store = store or FileCredentialStore(args.credentials)
    client = ApiClient(args.base_url, store, session=session, timeout=settings.API_TIMEOUT_SECONDS)
    try:
        return COMMANDS[args.command](args, client, store)
    except ValidationError as e:
        for line in format_validation_errors(e):
            print(line, file=sys.stderr)
        return 2
    except (ApiError, AuthServiceException) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
