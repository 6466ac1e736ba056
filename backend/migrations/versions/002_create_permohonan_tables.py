"""Create permohonan and permohonan_dokumen tables

Revision ID: 002
Revises: 001
Create Date: 2026-09-14 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'permohonan',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=False),
        # References the external catalog service, so no foreign key
        sa.Column('jenis_lesen_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.Text(), server_default='Draf', nullable=False),
        sa.Column('tarikh_serahan', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('butiran_operasi', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('Draf', 'Diserahkan', 'Dibatalkan')",
            name='ck_permohonan_status'
        ),
        sa.CheckConstraint(
            "(status = 'Diserahkan') = (tarikh_serahan IS NOT NULL)",
            name='ck_permohonan_tarikh_serahan'
        )
    )
    op.create_index('ix_permohonan_user_id', 'permohonan', ['user_id'])
    op.create_index('ix_permohonan_company_id', 'permohonan', ['company_id'])
    op.create_index('ix_permohonan_jenis_lesen_id', 'permohonan', ['jenis_lesen_id'])
    op.create_index('ix_permohonan_status', 'permohonan', ['status'])

    op.execute("""
        CREATE TRIGGER update_permohonan_updated_at
        BEFORE UPDATE ON permohonan
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)

    op.create_table(
        'permohonan_dokumen',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('permohonan_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('keperluan_dokumen_id', sa.Integer(), nullable=False),
        sa.Column('nama_fail', sa.Text(), nullable=False),
        sa.Column('mime', sa.Text(), nullable=False),
        sa.Column('saiz_bait', sa.BigInteger(), nullable=False),
        sa.Column('url_storan', sa.Text(), nullable=False),
        sa.Column('hash_fail', sa.Text(), nullable=True),
        sa.Column('status_sah', sa.Text(), server_default='BelumSah', nullable=False),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['permohonan_id'], ['permohonan.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.id'], ondelete='RESTRICT'),
        sa.UniqueConstraint('permohonan_id', 'keperluan_dokumen_id', name='uq_permohonan_dokumen_keperluan'),
        sa.CheckConstraint(
            "status_sah IN ('BelumSah', 'Disahkan')",
            name='ck_permohonan_dokumen_status_sah'
        )
    )
    op.create_index('ix_permohonan_dokumen_permohonan_id', 'permohonan_dokumen', ['permohonan_id'])

    op.execute("""
        CREATE TRIGGER update_permohonan_dokumen_updated_at
        BEFORE UPDATE ON permohonan_dokumen
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS update_permohonan_dokumen_updated_at ON permohonan_dokumen')
    op.drop_index('ix_permohonan_dokumen_permohonan_id', table_name='permohonan_dokumen')
    op.drop_table('permohonan_dokumen')

    op.execute('DROP TRIGGER IF EXISTS update_permohonan_updated_at ON permohonan')
    op.drop_index('ix_permohonan_status', table_name='permohonan')
    op.drop_index('ix_permohonan_jenis_lesen_id', table_name='permohonan')
    op.drop_index('ix_permohonan_company_id', table_name='permohonan')
    op.drop_index('ix_permohonan_user_id', table_name='permohonan')
    op.drop_table('permohonan')
