"""create players, rooms, players_in_room and invitations

Revision ID: 5c2e9a71d0b4
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a71d0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'players' not in existing_tables:
        op.create_table(
            'players',
            sa.Column('address', sa.String(length=128), primary_key=True),
            sa.Column('score', sa.BigInteger(), nullable=False, server_default='0'),
            sa.Column('token_balance', sa.Float(), nullable=True),
            sa.Column('games_played', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('bonus_received', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('timestamp', sa.Float(), nullable=False),
        )

    if 'rooms' not in existing_tables:
        op.create_table(
            'rooms',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=64), nullable=False, unique=True),
            sa.Column('capacity', sa.Integer(), nullable=False),
            sa.Column('occupant_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('status', sa.String(length=16), nullable=False, server_default='open'),
        )
        op.create_index('ix_rooms_status', 'rooms', ['status'])

    if 'players_in_room' not in existing_tables:
        op.create_table(
            'players_in_room',
            sa.Column('address', sa.String(length=128), primary_key=True),
            sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id'), nullable=False),
            sa.Column('timestamp', sa.Float(), nullable=False),
        )
        op.create_index('ix_players_in_room_room_id', 'players_in_room', ['room_id'])

    if 'invitations' not in existing_tables:
        op.create_table(
            'invitations',
            sa.Column('invitee_address', sa.String(length=128), primary_key=True),
            sa.Column('inviter_address', sa.String(length=128), nullable=False),
            sa.Column('bonus_applied', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('timestamp', sa.Float(), nullable=False),
        )
        op.create_index('ix_invitations_inviter_address', 'invitations', ['inviter_address'])


def downgrade():
    op.drop_index('ix_invitations_inviter_address', table_name='invitations')
    op.drop_table('invitations')
    op.drop_index('ix_players_in_room_room_id', table_name='players_in_room')
    op.drop_table('players_in_room')
    op.drop_index('ix_rooms_status', table_name='rooms')
    op.drop_table('rooms')
    op.drop_table('players')
