import os

from app.db import SessionLocal
from app.domain.catalog.errors import Conflict
from app.services.accounts import AccountsService
from app.services.master_data import MasterDataService


def ensure_admin_user(accounts: AccountsService, username: str, password: str) -> None:
    try:
        accounts.register_user(
            {
                "username": username,
                "fullname": os.getenv("DEFAULT_ADMIN_NAME", "Administrator"),
                "email": os.getenv("DEFAULT_ADMIN_EMAIL", f"{username}@mail.com"),
                "password": password,
                "phone": os.getenv("DEFAULT_ADMIN_PHONE", "081234567890"),
            }
        )
    except Conflict:
        print(f"User {username} already exists")


def main() -> None:
    created = MasterDataService(SessionLocal).seed()
    print(
        "Master data: {categories} categories, {colours} colours, {sizes} sizes added".format(**created)
    )

    username = os.getenv("DEFAULT_ADMIN_USERNAME")
    password = os.getenv("DEFAULT_ADMIN_PASSWORD")
    if username and password:
        ensure_admin_user(AccountsService(SessionLocal), username, password)

    print("Seed OK")


if __name__ == "__main__":
    main()
