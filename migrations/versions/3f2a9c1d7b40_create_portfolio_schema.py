"""create portfolio schema

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-10-18 10:12:41.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(precision=20, scale=8)

asset_type = sa.Enum('stock', 'etf', 'option', 'mutual_fund', 'crypto', name='asset_type')
account_type = sa.Enum('depository', 'investment', 'credit', 'loan', 'other', name='account_type')
transaction_type = sa.Enum(
    'buy', 'sell', 'deposit', 'withdrawal', 'dividend', 'interest', name='transaction_type'
)


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'portfolios',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('portfolio_id', sa.Integer(), nullable=False),
        sa.Column('institution_name', sa.String(), nullable=False),
        sa.Column('account_name', sa.String(), nullable=False),
        sa.Column('account_type', account_type, nullable=False),
        sa.Column('balance_current', MONEY, nullable=False),
        sa.Column('balance_updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['portfolio_id'], ['portfolios.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accounts_portfolio_id', 'accounts', ['portfolio_id'])

    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('ticker', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('asset_type', asset_type, nullable=False),
        sa.Column('current_price', MONEY, nullable=True),
        sa.Column('percent_change', MONEY, nullable=True),
        sa.Column('price_updated_at', sa.DateTime(), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_assets_ticker', 'assets', ['ticker'], unique=True)

    op.create_table(
        'asset_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('open', MONEY, nullable=True),
        sa.Column('high', MONEY, nullable=True),
        sa.Column('low', MONEY, nullable=True),
        sa.Column('close', MONEY, nullable=False),
        sa.Column('volume', sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_asset_history_asset_date', 'asset_history', ['asset_id', 'date'])

    op.create_table(
        'holdings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('quantity', MONEY, nullable=False),
        sa.Column('average_cost_basis', MONEY, nullable=False),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('account_id', 'asset_id', name='uq_holding_account_asset'),
        sa.CheckConstraint('quantity >= 0', name='ck_holding_quantity'),
        sa.CheckConstraint('average_cost_basis >= 0', name='ck_holding_cost_basis'),
    )
    op.create_index('ix_holdings_account_id', 'holdings', ['account_id'])
    op.create_index('ix_holdings_asset_id', 'holdings', ['asset_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('transaction_type', transaction_type, nullable=False),
        sa.Column('transaction_date', sa.DateTime(), nullable=False),
        sa.Column('quantity', MONEY, nullable=True),
        sa.Column('price_per_unit', MONEY, nullable=True),
        sa.Column('total_amount', MONEY, nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('asset_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transactions_account_id', 'transactions', ['account_id'])
    op.create_index('ix_transactions_asset_id', 'transactions', ['asset_id'])
    op.create_index('ix_transactions_transaction_date', 'transactions', ['transaction_date'])

    op.create_table(
        'portfolio_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('portfolio_id', sa.Integer(), nullable=False),
        sa.Column('snapshot_date', sa.Date(), nullable=False),
        sa.Column('total_value', MONEY, nullable=False),
        sa.Column('cash_value', MONEY, nullable=False),
        sa.Column('investment_value', MONEY, nullable=False),
        sa.ForeignKeyConstraint(['portfolio_id'], ['portfolios.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('portfolio_id', 'snapshot_date', name='uq_portfolio_history_day'),
    )


def downgrade():
    op.drop_table('portfolio_history')
    op.drop_index('ix_transactions_transaction_date', table_name='transactions')
    op.drop_index('ix_transactions_asset_id', table_name='transactions')
    op.drop_index('ix_transactions_account_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_holdings_asset_id', table_name='holdings')
    op.drop_index('ix_holdings_account_id', table_name='holdings')
    op.drop_table('holdings')
    op.drop_index('ix_asset_history_asset_date', table_name='asset_history')
    op.drop_table('asset_history')
    op.drop_index('ix_assets_ticker', table_name='assets')
    op.drop_table('assets')
    op.drop_index('ix_accounts_portfolio_id', table_name='accounts')
    op.drop_table('accounts')
    op.drop_table('portfolios')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    transaction_type.drop(bind, checkfirst=True)
    account_type.drop(bind, checkfirst=True)
    asset_type.drop(bind, checkfirst=True)
