"""create catalog, product image and variant tables

Revision ID: 3f1c2b9d7e10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2b9d7e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'categories',
        sa.Column('category_id', sa.Integer(), primary_key=True),
        sa.Column('category_name', sa.String(255), nullable=False, unique=True),
    )
    op.create_table(
        'specifications',
        sa.Column('specification_id', sa.Integer(), primary_key=True),
        sa.Column('specification_name', sa.String(255), nullable=False, unique=True),
    )
    op.create_table(
        'category_specifications',
        sa.Column('category_spec_id', sa.Integer(), primary_key=True),
        sa.Column('category_id', sa.Integer(),
                  sa.ForeignKey('categories.category_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('specification_id', sa.Integer(),
                  sa.ForeignKey('specifications.specification_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.UniqueConstraint('category_id', 'specification_id',
                            name='uq_category_specification'),
    )
    op.create_table(
        'products',
        sa.Column('product_id', sa.Integer(), primary_key=True),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('product_sku', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('product_description', sa.Text()),
        sa.Column('product_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('product_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_status', sa.String(20), nullable=False,
                  server_default='draft', index=True),
        sa.Column('category_id', sa.Integer(),
                  sa.ForeignKey('categories.category_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    op.create_table(
        'product_images',
        sa.Column('product_image_id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(),
                  sa.ForeignKey('products.product_id', ondelete='CASCADE'),
                  nullable=False, unique=True, index=True),
        sa.Column('main_image', sa.LargeBinary()),
        sa.Column('thumbnail_image1', sa.LargeBinary()),
        sa.Column('thumbnail_image2', sa.LargeBinary()),
        sa.Column('thumbnail_image3', sa.LargeBinary()),
        sa.Column('thumbnail_image4', sa.LargeBinary()),
        sa.Column('thumbnail_image5', sa.LargeBinary()),
    )
    op.create_table(
        'variants',
        sa.Column('variant_id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(),
                  sa.ForeignKey('products.product_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('variant_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('variant_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('variant_status', sa.String(20), nullable=False,
                  server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        sa.Column('deleted_at', sa.DateTime(timezone=True)),
        sa.CheckConstraint('variant_quantity >= 0', name='ck_variant_quantity'),
    )
    op.create_table(
        'variant_values',
        sa.Column('variant_value_id', sa.Integer(), primary_key=True),
        sa.Column('specification_id', sa.Integer(),
                  sa.ForeignKey('specifications.specification_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('value', sa.String(255), nullable=False),
        sa.UniqueConstraint('specification_id', 'value', name='uq_variant_value'),
    )
    op.create_table(
        'variant_combinations',
        sa.Column('variant_combination_id', sa.Integer(), primary_key=True),
        sa.Column('variant_id', sa.Integer(),
                  sa.ForeignKey('variants.variant_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('specification_id', sa.Integer(),
                  sa.ForeignKey('specifications.specification_id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('variant_value_id', sa.Integer(),
                  sa.ForeignKey('variant_values.variant_value_id', ondelete='CASCADE'),
                  nullable=False),
    )
    op.create_table(
        'variant_images',
        sa.Column('variant_image_id', sa.Integer(), primary_key=True),
        sa.Column('variant_id', sa.Integer(),
                  sa.ForeignKey('variants.variant_id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('image_data', sa.LargeBinary(), nullable=False),
        sa.Column('image_type', sa.String(100), nullable=False),
    )


def downgrade():
    op.drop_table('variant_images')
    op.drop_table('variant_combinations')
    op.drop_table('variant_values')
    op.drop_table('variants')
    op.drop_table('product_images')
    op.drop_table('products')
    op.drop_table('category_specifications')
    op.drop_table('specifications')
    op.drop_table('categories')
