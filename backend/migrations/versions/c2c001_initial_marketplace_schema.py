"""initial marketplace schema

Revision ID: c2c001
Revises:
Create Date: 2025-11-02 00:00:00.000000

Creates the complete marketplace schema:
- users, categories (self-referential tree), standard_products (SKU catalog)
- events / event_options
- items + ticket_details (1:1 ticket extension, seat_info as JSONB)
- transactions (one per item), reviews, wishlists
- chat_rooms / chat_messages

On PostgreSQL it also installs the anti-scalping trigger on ticket_details.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = 'c2c001'
down_revision = None
branch_labels = None
depends_on = None


JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

NOW = sa.text('CURRENT_TIMESTAMP')


# Resale price may not exceed 120% of face value. Mirrors the check done in
# items_service so writes that bypass the API are held to the same rule.
CREATE_TICKET_PRICE_TRIGGER = """
CREATE OR REPLACE FUNCTION check_ticket_price() RETURNS trigger AS $$
DECLARE
    sale_price INTEGER;
BEGIN
    SELECT price INTO sale_price FROM items WHERE id = NEW.item_id;
    IF sale_price * 100 > NEW.original_price * 120 THEN
        RAISE EXCEPTION 'Ticket price cannot exceed 120 percent of the original price';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

CREATE TRIGGER trg_check_ticket_price
BEFORE INSERT OR UPDATE ON ticket_details
FOR EACH ROW EXECUTE FUNCTION check_ticket_price();
"""

DROP_TICKET_PRICE_TRIGGER = """
DROP TRIGGER IF EXISTS trg_check_ticket_price ON ticket_details;
DROP FUNCTION IF EXISTS check_ticket_price();
"""


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )

    # ============================================================================
    # categories: forest; roots have parent_id NULL
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_categories_parent_id', 'categories', ['parent_id'])

    op.create_table(
        'standard_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_code', sa.String(length=50), nullable=False),
        sa.Column('brand_name', sa.String(length=50), nullable=False),
        sa.Column('model_name', sa.String(length=100), nullable=False),
        sa.Column('specs', JSON_TYPE, nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_code'),
    )
    op.create_index('ix_standard_products_category_id', 'standard_products', ['category_id'])

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_name', sa.String(length=100), nullable=False),
        sa.Column('artist_name', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'event_options',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('venue', sa.String(length=100), nullable=False),
        sa.Column('event_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_event_options_event_id', 'event_options', ['event_id'])

    # ============================================================================
    # items: listings. A ticket_details row marks a listing as a ticket.
    # ============================================================================
    op.create_table(
        'items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('std_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='ON_SALE'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.CheckConstraint("status IN ('ON_SALE', 'RESERVED', 'SOLD')", name='ck_items_status'),
        sa.CheckConstraint('price > 0', name='ck_items_price_positive'),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['std_id'], ['standard_products.id'], ),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_items_seller_id', 'items', ['seller_id'])
    op.create_index('ix_items_std_id', 'items', ['std_id'])
    op.create_index('ix_items_category_id', 'items', ['category_id'])
    op.create_index('ix_items_status', 'items', ['status'])

    op.create_table(
        'ticket_details',
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('event_option_id', sa.Integer(), nullable=False),
        sa.Column('seat_info', JSON_TYPE, nullable=False),
        sa.Column('original_price', sa.Integer(), nullable=False),
        sa.CheckConstraint('original_price > 0', name='ck_ticket_details_original_price_positive'),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_option_id'], ['event_options.id'], ),
        sa.PrimaryKeyConstraint('item_id'),
    )
    op.create_index('ix_ticket_details_event_option_id', 'ticket_details', ['event_option_id'])

    # ============================================================================
    # transactions: item_id unique -> at most one sale per listing
    # ============================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('buyer_id', sa.Integer(), nullable=False),
        sa.Column('final_price', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.CheckConstraint('final_price > 0', name='ck_transactions_final_price_positive'),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['buyer_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id', name='uq_transactions_item'),
    )
    op.create_index('ix_transactions_buyer_id', 'transactions', ['buyer_id'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('reviewer_id', sa.Integer(), nullable=False),
        sa.Column('reviewee_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ),
        sa.ForeignKeyConstraint(['reviewer_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reviewee_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_id', 'reviewer_id', name='uq_reviews_transaction_reviewer'),
    )
    op.create_index('ix_reviews_transaction_id', 'reviews', ['transaction_id'])
    op.create_index('ix_reviews_reviewee_id', 'reviews', ['reviewee_id'])

    op.create_table(
        'wishlists',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'item_id', name='uq_wishlists_user_item'),
    )
    op.create_index('ix_wishlists_user_id', 'wishlists', ['user_id'])
    op.create_index('ix_wishlists_item_id', 'wishlists', ['item_id'])

    op.create_table(
        'chat_rooms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('buyer_id', sa.Integer(), nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.ForeignKeyConstraint(['buyer_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['seller_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_id', 'buyer_id', name='uq_chat_rooms_item_buyer'),
    )
    op.create_index('ix_chat_rooms_item_id', 'chat_rooms', ['item_id'])
    op.create_index('ix_chat_rooms_buyer_id', 'chat_rooms', ['buyer_id'])
    op.create_index('ix_chat_rooms_seller_id', 'chat_rooms', ['seller_id'])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False, server_default=NOW),
        sa.ForeignKeyConstraint(['room_id'], ['chat_rooms.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sender_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_chat_messages_room_sent', 'chat_messages', ['room_id', 'sent_at'])

    if op.get_bind().dialect.name == 'postgresql':
        op.execute(CREATE_TICKET_PRICE_TRIGGER)


def downgrade():
    """Drop all tables (destructive operation)."""
    if op.get_bind().dialect.name == 'postgresql':
        op.execute(DROP_TICKET_PRICE_TRIGGER)

    op.drop_table('chat_messages')
    op.drop_table('chat_rooms')
    op.drop_table('wishlists')
    op.drop_table('reviews')
    op.drop_table('transactions')
    op.drop_table('ticket_details')
    op.drop_table('items')
    op.drop_table('event_options')
    op.drop_table('events')
    op.drop_table('standard_products')
    op.drop_table('categories')
    op.drop_table('users')
