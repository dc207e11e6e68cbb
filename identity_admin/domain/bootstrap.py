"""Startup guarantee that an active administrator exists."""

from __future__ import annotations

import logging

from .account import INITIALS_MAX_LENGTH, NAME_MAX_LENGTH, Account, require_text
from .contracts import BootstrapAdmin
from .errors import Conflict, DuplicateInitialsError, ValidationError
from .service import AccountStore
from ..security.passwords import DEFAULT_ROUNDS, hash_password, password_problem

logger = logging.getLogger(__name__)


def ensure_bootstrap_admin(
    repository: AccountStore,
    admin: BootstrapAdmin,
    *,
    password_rounds: int = DEFAULT_ROUNDS,
) -> Account | None:
    """Create the configured administrator unless an active admin already exists.

    Runs before the service accepts requests, so there is no caller to authorize.
    Returns the created account, or ``None`` when nothing had to be done.

    Raises
    ------
    Conflict
        When the configured initials already belong to another account.
    ValidationError
        When the configured name, initials or password break the account field rules.
    """
    if repository.count_active_admins() > 0:
        logger.info("active administrator present, bootstrap skipped")
        return None

    require_text("bootstrap admin name", admin.name, NAME_MAX_LENGTH)
    require_text("bootstrap admin initials", admin.initials, INITIALS_MAX_LENGTH)
    problem = password_problem(admin.password)
    if problem:
        raise ValidationError(f"bootstrap admin {problem}")
    if repository.find_account_by_initials(admin.initials) is not None:
        raise Conflict(f"bootstrap initials {admin.initials!r} already belong to another account")

    account = Account(
        account_id=None,
        display_name=admin.name,
        initials=admin.initials,
        password_hash=hash_password(admin.password, password_rounds),
        is_admin=True,
        is_active=True,
        email="",
    )
    try:
        created = repository.insert_account(account)
    except DuplicateInitialsError as exc:
        raise Conflict(f"bootstrap initials {admin.initials!r} already belong to another account") from exc
    logger.warning("no active administrator found, created bootstrap admin %r", created.initials)
    return created
