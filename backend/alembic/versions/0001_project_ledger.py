from alembic import op
import sqlalchemy as sa

revision = "0001_project_ledger"
down_revision = None
branch_labels = None
depends_on = None


def _project_fk():
    return sa.ForeignKey("projects.id", ondelete="CASCADE")


def _created_at():
    return sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True)


def upgrade():
    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        _created_at(),
    )
    op.create_index("ix_projects_name", "projects", ["name"], unique=False)

    op.create_table(
        "workers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("worker_type", sa.String(length=32), nullable=False),
        sa.Column("daily_wage", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )

    op.create_table(
        "materials",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=True),
        sa.Column("unit", sa.String(length=32), nullable=True),
        _created_at(),
    )

    op.create_table(
        "fund_transfers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("sender_name", sa.String(length=128), nullable=True),
        sa.Column("transfer_number", sa.String(length=64), nullable=True),
        sa.Column("transfer_type", sa.String(length=32), nullable=False),
        sa.Column("notes", sa.String(length=512), nullable=True),
        _created_at(),
    )

    op.create_table(
        "worker_attendance",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("worker_id", sa.String(length=36), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("work_days", sa.Numeric(4, 2), nullable=False, server_default="1"),
        sa.Column("daily_wage", sa.Numeric(10, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("payment_type", sa.String(length=16), nullable=False, server_default="partial"),
        sa.Column("work_description", sa.String(length=512), nullable=True),
        _created_at(),
    )
    op.create_index("ix_worker_attendance_worker_id", "worker_attendance", ["worker_id"], unique=False)

    op.create_table(
        "transportation_expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("worker_id", sa.String(length=36), sa.ForeignKey("workers.id"), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("description", sa.String(length=256), nullable=False),
        sa.Column("notes", sa.String(length=512), nullable=True),
        _created_at(),
    )

    op.create_table(
        "worker_transfers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("worker_id", sa.String(length=36), sa.ForeignKey("workers.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("recipient_name", sa.String(length=128), nullable=False),
        sa.Column("transfer_method", sa.String(length=16), nullable=False),
        sa.Column("notes", sa.String(length=512), nullable=True),
        _created_at(),
    )
    op.create_index("ix_worker_transfers_worker_id", "worker_transfers", ["worker_id"], unique=False)

    op.create_table(
        "worker_misc_expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("description", sa.String(length=256), nullable=False),
        sa.Column("notes", sa.String(length=512), nullable=True),
        _created_at(),
    )

    op.create_table(
        "material_purchases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("material_id", sa.String(length=36), sa.ForeignKey("materials.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("purchase_type", sa.String(length=16), nullable=False),
        sa.Column("supplier_name", sa.String(length=128), nullable=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.String(length=512), nullable=True),
        _created_at(),
    )
    op.create_index("ix_material_purchases_material_id", "material_purchases", ["material_id"], unique=False)

    op.create_table(
        "project_fund_transfers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("from_project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("to_project_id", sa.String(length=36), _project_fk(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("reason", sa.String(length=256), nullable=True),
        sa.Column("notes", sa.String(length=512), nullable=True),
        _created_at(),
    )
    op.create_index("ix_project_fund_transfers_from_project_id", "project_fund_transfers", ["from_project_id"], unique=False)
    op.create_index("ix_project_fund_transfers_to_project_id", "project_fund_transfers", ["to_project_id"], unique=False)
    op.create_index(
        "ix_project_fund_transfers_pair", "project_fund_transfers", ["from_project_id", "to_project_id"], unique=False
    )

    for table in ("fund_transfers", "worker_attendance", "transportation_expenses", "worker_transfers",
                  "worker_misc_expenses", "material_purchases"):
        op.create_index(f"ix_{table}_project_id", table, ["project_id"], unique=False)
        op.create_index(f"ix_{table}_date", table, ["date"], unique=False)
    op.create_index("ix_project_fund_transfers_date", "project_fund_transfers", ["date"], unique=False)


def downgrade():
    for table in ("project_fund_transfers", "material_purchases", "worker_misc_expenses", "worker_transfers",
                  "transportation_expenses", "worker_attendance", "fund_transfers", "materials", "workers",
                  "projects"):
        op.drop_table(table)
