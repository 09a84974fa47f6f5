"""SQL implementation of UserService."""

from __future__ import annotations

from sqlalchemy import bindparam, func, insert, select

from storefront.domain.cancellation import CancellationSignal
from storefront.domain.models.users import User
from storefront.domain.services.users import UserService, validate_new_user
from storefront.infrastructure.persistence.binding import bind
from storefront.infrastructure.persistence.executor import QueryExecutor
from storefront.infrastructure.persistence.mapping import (
    ColumnSpec,
    RowMapper,
    read_bool,
    read_int,
    read_text,
    read_timestamp,
)
from storefront.infrastructure.persistence.models.users import User as UserTable

# Users.Id is a 32-bit INTEGER; ids outside it cannot exist.
MAX_USER_ID = 2**31 - 1

USER_COLUMNS = (
    UserTable.id.label("Id"),
    UserTable.username.label("Username"),
    UserTable.email.label("Email"),
    UserTable.password.label("Password"),
    UserTable.created_date.label("CreatedDate"),
    UserTable.is_active.label("IsActive"),
    UserTable.role.label("Role"),
)

USER_MAPPER: RowMapper[User] = RowMapper(
    User,
    [
        ColumnSpec("Id", "id", read_int),
        ColumnSpec("Username", "username", read_text),
        ColumnSpec("Email", "email", read_text),
        ColumnSpec("Password", "password", read_text),
        ColumnSpec("CreatedDate", "created_date", read_timestamp),
        ColumnSpec("IsActive", "is_active", read_bool),
        ColumnSpec("Role", "role", read_text, nullable=True),
    ],
)

SELECT_USER_BY_ID = select(*USER_COLUMNS).where(UserTable.id == bindparam("user_id"))

COUNT_MATCHING_CREDENTIALS = (
    select(func.count())
    .select_from(UserTable)
    .where(
        UserTable.username == bindparam("username"),
        UserTable.password == bindparam("password"),
    )
)

# CreatedDate comes from the store clock; RETURNING hands back the id and
# timestamp from the same statement instead of re-selecting by username.
INSERT_USER = (
    insert(UserTable)
    .values(
        {
            UserTable.username: bindparam("username"),
            UserTable.email: bindparam("email"),
            UserTable.password: bindparam("password"),
            UserTable.created_date: func.now(),
            UserTable.is_active: True,
        }
    )
    .returning(*USER_COLUMNS)
)


class SqlUserService(UserService):
    def __init__(self, executor: QueryExecutor) -> None:
        self._executor = executor

    async def get_user_by_id(
        self, user_id: int, signal: CancellationSignal | None = None
    ) -> User | None:
        if not 0 < user_id <= MAX_USER_ID:
            return None
        bound = bind(SELECT_USER_BY_ID, {"user_id": user_id})
        return await self._executor.fetch_optional(bound, USER_MAPPER, signal)

    async def validate_credentials(
        self, username: str, password: str, signal: CancellationSignal | None = None
    ) -> bool:
        bound = bind(COUNT_MATCHING_CREDENTIALS, {"username": username, "password": password})
        matches = await self._executor.fetch_scalar(bound, signal)
        return bool(matches)

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        signal: CancellationSignal | None = None,
    ) -> User:
        validate_new_user(username, email, password)
        bound = bind(INSERT_USER, {"username": username, "email": email, "password": password})
        return await self._executor.execute_returning(bound, USER_MAPPER, signal)
