import argparse
import getpass
import sys

from app.core.config import Settings
from app.core.logging import configure_logging
from app.domain.errors import AppError
from app.infrastructure.persistence.sqlite import SQLitePersistence
from app.services.credential_service import CredentialService


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an administrator or promote an existing account.")
    parser.add_argument("email")
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()

    settings = Settings()
    configure_logging(settings.log_level)
    password = getpass.getpass("Password (leave empty to promote an existing account): ").strip()

    persistence = SQLitePersistence(settings.database_path)
    try:
        service = CredentialService(persistence, bcrypt_rounds=settings.bcrypt_rounds)
        user = service.ensure_admin(args.name, args.email, password or None)
    except AppError as exc:
        print(f"Failed: {exc.message}", file=sys.stderr)
        for field, reason in (exc.errors or {}).items():
            print(f"  {field}: {reason}", file=sys.stderr)
        return 1
    finally:
        persistence.close()

    if user is None:
        print("No account exists for that email and no password was given.", file=sys.stderr)
        return 1
    print(f"Administrator ready: {user.email} (id {user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
