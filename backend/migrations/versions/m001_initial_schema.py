"""initial schema

Revision ID: m001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete Millet inventory schema:
- products: catalogue with SKU and prices in cents
- warehouses / distributors: the supply network (id-based references)
- users: one login per warehouse/distributor, plus admin logins
- warehouse_inventory / distributor_stock: stock ledger, qty >= 0
- orders / order_lines / order_status_history: distributor order pipeline
- customer_orders / customer_order_items: warehouse counter sales
- sales / sale_items: distributor sales
- activity_logs: append-only operator audit trail
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'm001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('ean', sa.String(length=32), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('mrp_cents', sa.Integer(), nullable=False),
        sa.Column('selling_price_cents', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint('mrp_cents >= 0', name='ck_products_mrp_nonneg'),
        sa.CheckConstraint('selling_price_cents >= 0', name='ck_products_selling_price_nonneg'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_name', 'products', ['name'])

    # ============================================================================
    # warehouses / distributors
    # ============================================================================
    op.create_table(
        'warehouses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'distributors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=120), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_distributors_warehouse_id', 'distributors', ['warehouse_id'])

    # ============================================================================
    # users: one login per warehouse / distributor, plus admins
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=True),
        sa.Column('distributor_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'warehouse', 'distributor')", name='ck_users_role'),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('warehouse_id'),
        sa.UniqueConstraint('distributor_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    # ============================================================================
    # stock ledger
    # ============================================================================
    op.create_table(
        'warehouse_inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('updated_at'),
        sa.CheckConstraint('qty >= 0', name='ck_warehouse_inventory_qty_nonneg'),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('warehouse_id', 'product_id', name='uq_warehouse_inventory_pair'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_warehouse_inventory_warehouse_id', 'warehouse_inventory', ['warehouse_id'])
    op.create_index('ix_warehouse_inventory_product_id', 'warehouse_inventory', ['product_id'])

    op.create_table(
        'distributor_stock',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('updated_at'),
        sa.CheckConstraint('qty >= 0', name='ck_distributor_stock_qty_nonneg'),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('distributor_id', 'product_id', name='uq_distributor_stock_pair'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_distributor_stock_distributor_id', 'distributor_stock', ['distributor_id'])
    op.create_index('ix_distributor_stock_product_id', 'distributor_stock', ['product_id'])

    # ============================================================================
    # distributor order pipeline
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        _timestamp('created_at'),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('Pending', 'Shipped', 'Delivered')", name='ck_orders_status'),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_warehouse_id', 'orders', ['warehouse_id'])
    op.create_index('ix_orders_distributor_id', 'orders', ['distributor_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_warehouse_status_created', 'orders',
                    ['warehouse_id', 'status', 'created_at'])
    op.create_index('ix_orders_distributor_created', 'orders', ['distributor_id', 'created_at'])

    op.create_table(
        'order_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_lines_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'product_id', name='uq_order_lines_order_product'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_lines_order_id', 'order_lines', ['order_id'])
    op.create_index('ix_order_lines_product_id', 'order_lines', ['product_id'])

    op.create_table(
        'order_status_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=36), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('from_status', sa.String(length=16), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('actor', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_status_history_warehouse_id', 'order_status_history', ['warehouse_id'])
    op.create_index('ix_order_status_history_distributor_id', 'order_status_history', ['distributor_id'])
    op.create_index('ix_order_status_history_created_at', 'order_status_history', ['created_at'])
    op.create_index('ix_order_status_history_order_created', 'order_status_history',
                    ['order_id', 'created_at'])

    # ============================================================================
    # warehouse customer orders
    # ============================================================================
    op.create_table(
        'customer_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_cents', sa.Integer(), nullable=False, server_default='0'),
        _timestamp('purchased_at'),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customer_orders_warehouse_id', 'customer_orders', ['warehouse_id'])
    op.create_index('ix_customer_orders_purchased_at', 'customer_orders', ['purchased_at'])
    op.create_index('ix_customer_orders_warehouse_purchased', 'customer_orders',
                    ['warehouse_id', 'purchased_at'])

    op.create_table(
        'customer_order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('mrp_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('selling_price_cents', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_customer_order_items_quantity_positive'),
        sa.ForeignKeyConstraint(['customer_order_id'], ['customer_orders.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customer_order_items_customer_order_id', 'customer_order_items',
                    ['customer_order_id'])
    op.create_index('ix_customer_order_items_product_id', 'customer_order_items', ['product_id'])

    # ============================================================================
    # distributor sales
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('distributor_id', sa.Integer(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_distributor_id', 'sales', ['distributor_id'])
    op.create_index('ix_sales_created_at', 'sales', ['created_at'])
    op.create_index('ix_sales_distributor_created', 'sales', ['distributor_id', 'created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('mrp_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('final_value_cents', sa.Integer(), nullable=False),
        sa.CheckConstraint('qty > 0', name='ck_sale_items_qty_positive'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])

    # ============================================================================
    # activity_logs: append-only
    # ============================================================================
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('warehouse_id', sa.Integer(), nullable=True),
        sa.Column('distributor_id', sa.Integer(), nullable=True),
        _timestamp('timestamp'),
        sa.ForeignKeyConstraint(['warehouse_id'], ['warehouses.id'], ),
        sa.ForeignKeyConstraint(['distributor_id'], ['distributors.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_activity_logs_timestamp', 'activity_logs', ['timestamp'])
    op.create_index('ix_activity_logs_warehouse_ts', 'activity_logs', ['warehouse_id', 'timestamp'])
    op.create_index('ix_activity_logs_distributor_ts', 'activity_logs', ['distributor_id', 'timestamp'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('activity_logs')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('customer_order_items')
    op.drop_table('customer_orders')
    op.drop_table('order_status_history')
    op.drop_table('order_lines')
    op.drop_table('orders')
    op.drop_table('distributor_stock')
    op.drop_table('warehouse_inventory')
    op.drop_table('users')
    op.drop_table('distributors')
    op.drop_table('warehouses')
    op.drop_table('products')
