"""Create the users table."""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c3e1f7a9b2d"
down_revision = None
branch_labels = None
depends_on = None


PAPEL_GLOBAL_ENUM = "papel_global"


def upgrade() -> None:
    """Create users with credential, verification and recovery columns."""

    papel_global = sa.Enum("USUARIO", "ADMIN_CLUBE", "MASTER", name=PAPEL_GLOBAL_ENUM)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            papel_global,
            nullable=False,
            server_default=sa.text("'USUARIO'"),
        ),
        sa.Column("profile_photo_url", sa.String(length=512), nullable=True),
        sa.Column(
            "email_verified",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("verification_token", sa.String(length=128), nullable=True),
        sa.Column("recovery_token", sa.String(length=128), nullable=True),
        sa.Column("recovery_token_expires_at", sa.DateTime(), nullable=True),
        sa.Column("google_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("verification_token", name="uq_users_verification_token"),
        sa.UniqueConstraint("recovery_token", name="uq_users_recovery_token"),
        sa.UniqueConstraint("google_id", name="uq_users_google_id"),
    )


def downgrade() -> None:
    """Drop the users table."""

    op.drop_table("users")
    sa.Enum(name=PAPEL_GLOBAL_ENUM).drop(op.get_bind(), checkfirst=True)
