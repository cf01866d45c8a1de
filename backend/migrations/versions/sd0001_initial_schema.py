"""initial schema

Revision ID: sd0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete StockDesk schema:
- users: accounts and roles (USER / ADMIN)
- categories, suppliers: per-user lookup tables (name unique per user)
- products: per-user stock items (SKU unique across all users)
- requests, request_items: replenishment requests
- product_invoices: goods received, with requester snapshot
- stored_files: upload metadata (bytes live under STORAGE_ROOT)

Ownership: every owned table cascades on user deletion. Products that are
still referenced by request items or invoices cannot be deleted.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sd0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade():
    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=30), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # categories / suppliers: name unique per owner
    # ============================================================================
    for table in ('categories', 'suppliers'):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'name', name=f'uq_{table}_user_name'),
            sqlite_autoincrement=True
        )
        op.create_index(f'ix_{table}_user_id', table, ['user_id'])

    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_user_id', 'products', ['user_id'])
    op.create_index('ix_products_user_name', 'products', ['user_id', 'name'])

    # ============================================================================
    # requests / request_items
    # ============================================================================
    op.create_table(
        'requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('title', sa.String(length=120), nullable=True),
        sa.Column('notes', sa.String(length=1000), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'APPROVED', 'REJECTED', 'FULFILLED')",
            name='ck_requests_status',
        ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_requests_user_id', 'requests', ['user_id'])

    op.create_table(
        'request_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_request_items_quantity_positive'),
        sa.ForeignKeyConstraint(['request_id'], ['requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_request_items_request_id', 'request_items', ['request_id'])
    op.create_index('ix_request_items_product_id', 'request_items', ['product_id'])

    # ============================================================================
    # product_invoices
    # ============================================================================
    op.create_table(
        'product_invoices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('request_id', sa.Integer(), nullable=True),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('notes', sa.String(length=1000), nullable=True),
        sa.Column('requested_by_user_id', sa.Integer(), nullable=True),
        sa.Column('requested_by_name', sa.String(length=100), nullable=True),
        sa.Column('requested_by_email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_product_invoices_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_product_invoices_unit_price_nonneg'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.ForeignKeyConstraint(['request_id'], ['requests.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_invoices_user_id', 'product_invoices', ['user_id'])
    op.create_index('ix_product_invoices_request_id', 'product_invoices', ['request_id'])
    op.create_index('ix_product_invoices_user_product', 'product_invoices', ['user_id', 'product_id'])

    # ============================================================================
    # stored_files
    # ============================================================================
    op.create_table(
        'stored_files',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('original_name', sa.String(length=120), nullable=False),
        sa.Column('file_name', sa.String(length=64), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('storage_path', sa.String(length=512), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=True),
        sa.Column('request_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "kind IN ('INVOICE', 'REQUEST', 'DOCUMENT', 'OTHER')",
            name='ck_stored_files_kind',
        ),
        sa.CheckConstraint("invoice_id IS NULL OR kind = 'INVOICE'", name='ck_stored_files_invoice_kind'),
        sa.CheckConstraint("request_id IS NULL OR kind = 'REQUEST'", name='ck_stored_files_request_kind'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invoice_id'], ['product_invoices.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['request_id'], ['requests.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('file_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stored_files_user_id', 'stored_files', ['user_id'])
    op.create_index('ix_stored_files_user_kind', 'stored_files', ['user_id', 'kind'])


def downgrade():
    op.drop_table('stored_files')
    op.drop_table('product_invoices')
    op.drop_table('request_items')
    op.drop_table('requests')
    op.drop_table('products')
    op.drop_table('suppliers')
    op.drop_table('categories')
    op.drop_table('users')
