"""create character table and seed the default catalog

Revision ID: 5c2d7e9a1b34
Revises: 
Create Date: 2026-10-18 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e9a1b34'
down_revision = None
branch_labels = None
depends_on = None

# (name, has_hat, has_glasses, has_beard, hair_color, gender)
DEFAULT_ROWS = [
    ('Alex', False, True, False, 'black', 'male'),
    ('Emma', False, False, False, 'blonde', 'female'),
    ('Michael', True, False, True, 'brown', 'male'),
    ('Sophia', True, True, False, 'red', 'female'),
    ('James', False, False, True, 'black', 'male'),
    ('Olivia', True, False, False, 'brown', 'female'),
    ('William', False, True, False, 'white', 'male'),
    ('Charlotte', False, True, False, 'blonde', 'female'),
]


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'character' in set(insp.get_table_names()):
        return
    character = op.create_table(
        'character',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('image', sa.String(length=256), nullable=True),
        sa.Column('has_hat', sa.Boolean(), nullable=False),
        sa.Column('has_glasses', sa.Boolean(), nullable=False),
        sa.Column('has_beard', sa.Boolean(), nullable=False),
        sa.Column('hair_color', sa.String(length=16), nullable=False),
        sa.Column('gender', sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.bulk_insert(character, [
        {'name': name, 'image': f'/characters/{name.lower()}.svg', 'has_hat': hat,
         'has_glasses': glasses, 'has_beard': beard, 'hair_color': hair, 'gender': gender}
        for name, hat, glasses, beard, hair, gender in DEFAULT_ROWS
    ])


def downgrade():
    op.drop_table('character')
