# SQLModel definitions - imported here to ensure metadata is populated for Alembic.
from .base import CreatedAtMixin, TimestampMixin, UUIDMixin  # noqa: F401
from .organization import Organization  # noqa: F401
from .user_account import UserAccount  # noqa: F401
from .user_organization import UserOrganization  # noqa: F401
