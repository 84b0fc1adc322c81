"""create_files_and_file_chunks

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-18 10:12:31.208114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'files',
        sa.Column('file_id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(), nullable=False),
        sa.Column('total_size', sa.BigInteger(), nullable=False),
        sa.Column('upload_type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('storage_key', sa.String(), nullable=False),
        sa.Column('storage_upload_id', sa.String(), nullable=True),
        sa.Column('chunk_size', sa.BigInteger(), nullable=True),
        sa.Column('total_chunks', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('file_id'),
    )
    op.create_index('ix_files_owner_id', 'files', ['owner_id'])

    # No foreign key: chunk rows are not cascaded when a file is deleted
    op.create_table(
        'file_chunks',
        sa.Column('file_id', sa.String(length=36), nullable=False),
        sa.Column('chunk_number', sa.Integer(), nullable=False),
        sa.Column('expected_size', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('checksum', sa.String(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('file_id', 'chunk_number'),
    )


def downgrade() -> None:
    op.drop_table('file_chunks')
    op.drop_index('ix_files_owner_id', table_name='files')
    op.drop_table('files')
