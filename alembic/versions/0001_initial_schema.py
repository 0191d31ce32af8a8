"""Initial schema: organizations, users, stock catalog, families and case data.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

Creates:
- organizations, users
- categories, articles
- families, children, visit_notes
- needs, aids
- family_documents, interventions
- audit_logs
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', sa.Uuid(), primary_key=True)


def _org_fk():
    return sa.Column(
        'organization_id',
        sa.Uuid(),
        sa.ForeignKey('organizations.id', ondelete='CASCADE'),
        nullable=False,
    )


def _family_fk():
    return sa.Column(
        'family_id',
        sa.Uuid(),
        sa.ForeignKey('families.id', ondelete='CASCADE'),
        nullable=False,
    )


def _user_fk(name):
    return sa.Column(
        name,
        sa.Uuid(),
        sa.ForeignKey('users.id', ondelete='SET NULL'),
        nullable=True,
    )


def _ts(name, nullable=False):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def _text(name):
    return sa.Column(name, sa.Text(), server_default=sa.text("''"), nullable=False)


def upgrade() -> None:
    # ==========================================================================
    # Tenancy
    # ==========================================================================
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        _ts('created_at'),
    )

    op.create_table(
        'users',
        _id(),
        _org_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('TRUE'), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        _ts('created_at'),
    )
    op.create_index('idx_users_org', 'users', ['organization_id'])

    # ==========================================================================
    # Stock catalog
    # ==========================================================================
    op.create_table(
        'categories',
        _id(),
        _org_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        _text('description'),
        _ts('created_at'),
    )
    op.create_index('idx_categories_org', 'categories', ['organization_id'])

    op.create_table(
        'articles',
        _id(),
        _org_fk(),
        sa.Column(
            'category_id',
            sa.Uuid(),
            sa.ForeignKey('categories.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('name', sa.String(255), nullable=False),
        _text('description'),
        sa.Column('unit', sa.String(50), server_default=sa.text("'units'"), nullable=False),
        sa.Column('stock_quantity', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('stock_min', sa.Integer(), server_default=sa.text('0'), nullable=False),
        _ts('created_at'),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_articles_stock_quantity'),
        sa.CheckConstraint('stock_min >= 0', name='ck_articles_stock_min'),
    )
    op.create_index('idx_articles_org_category', 'articles', ['organization_id', 'category_id'])

    # ==========================================================================
    # Families
    # ==========================================================================
    op.create_table(
        'families',
        _id(),
        _org_fk(),
        sa.Column('responsible_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), server_default=sa.text("''"), nullable=False),
        _text('address'),
        sa.Column('neighborhood', sa.String(255), server_default=sa.text("''"), nullable=False),
        sa.Column('member_count', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('children_count', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('housing', sa.String(30), server_default=sa.text("'housed'"), nullable=False),
        _text('health_notes'),
        sa.Column('has_medical_needs', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        _text('notes'),
        sa.Column('archived', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        _ts('created_at'),
        _ts('updated_at'),
        _ts('last_visit_at', nullable=True),
        sa.CheckConstraint('member_count >= 1', name='ck_families_member_count'),
        sa.CheckConstraint('children_count >= 0', name='ck_families_children_count'),
    )
    op.create_index('idx_families_org_archived', 'families', ['organization_id', 'archived'])

    op.create_table(
        'children',
        _id(),
        _org_fk(),
        _family_fk(),
        sa.Column('first_name', sa.String(255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('sex', sa.String(10), nullable=False),
        _text('specific_needs'),
        _ts('created_at'),
        sa.CheckConstraint('age >= 0', name='ck_children_age'),
    )
    op.create_index('idx_children_family', 'children', ['family_id'])

    op.create_table(
        'visit_notes',
        _id(),
        _org_fk(),
        _family_fk(),
        _user_fk('volunteer_id'),
        sa.Column('volunteer_name', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        _ts('date'),
        _ts('created_at'),
    )
    op.create_index('idx_visit_notes_family_date', 'visit_notes', ['family_id', 'date'])

    # ==========================================================================
    # Needs and aids
    # ==========================================================================
    op.create_table(
        'needs',
        _id(),
        _org_fk(),
        _family_fk(),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column('urgency', sa.String(10), nullable=False),
        sa.Column('status', sa.String(10), server_default=sa.text("'pending'"), nullable=False),
        _text('details'),
        _text('comment'),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_index('idx_needs_org_status', 'needs', ['organization_id', 'status'])
    op.create_index('idx_needs_family_type', 'needs', ['family_id', 'type'])

    op.create_table(
        'aids',
        _id(),
        _org_fk(),
        _family_fk(),
        sa.Column('type', sa.String(64), nullable=False),
        sa.Column(
            'article_id',
            sa.Uuid(),
            sa.ForeignKey('articles.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('quantity', sa.Integer(), server_default=sa.text('1'), nullable=False),
        _ts('date'),
        _user_fk('volunteer_id'),
        sa.Column('volunteer_name', sa.String(255), nullable=False),
        sa.Column('source', sa.String(20), nullable=False),
        _text('notes'),
        sa.Column('proof_url', sa.String(2048), nullable=True),
        _ts('created_at'),
        sa.CheckConstraint('quantity >= 1', name='ck_aids_quantity'),
    )
    op.create_index('idx_aids_org_date', 'aids', ['organization_id', 'date'])
    op.create_index('idx_aids_family', 'aids', ['family_id'])
    op.create_index('idx_aids_dedup', 'aids', ['family_id', 'volunteer_id', 'created_at'])

    # ==========================================================================
    # Documents and interventions
    # ==========================================================================
    op.create_table(
        'family_documents',
        _id(),
        _org_fk(),
        _family_fk(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('document_type', sa.String(30), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('file_key', sa.String(512), nullable=False),
        _user_fk('uploaded_by'),
        sa.Column('uploaded_by_name', sa.String(255), nullable=False),
        _ts('uploaded_at'),
    )
    op.create_index('idx_family_documents_family', 'family_documents', ['family_id'])

    op.create_table(
        'interventions',
        _id(),
        _org_fk(),
        _family_fk(),
        _user_fk('assigned_user_id'),
        sa.Column('assigned_user_name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'todo'"), nullable=False),
        _ts('planned_at'),
        _ts('started_at', nullable=True),
        _ts('completed_at', nullable=True),
        sa.Column('checklist', sa.JSON(), nullable=False),
        _text('notes'),
        _ts('created_at'),
        _ts('updated_at'),
    )
    op.create_index('idx_interventions_org_status', 'interventions', ['organization_id', 'status'])
    op.create_index('idx_interventions_assignee', 'interventions', ['assigned_user_id', 'status'])
    op.create_index('idx_interventions_family', 'interventions', ['family_id'])

    # ==========================================================================
    # Audit trail
    # ==========================================================================
    op.create_table(
        'audit_logs',
        _id(),
        _org_fk(),
        _user_fk('actor_user_id'),
        sa.Column('actor_name', sa.String(255), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('entity_type', sa.String(30), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('details', sa.Text(), nullable=False),
        _ts('created_at'),
    )
    op.create_index('idx_audit_org_created', 'audit_logs', ['organization_id', 'created_at'])
    op.create_index(
        'idx_audit_org_entity', 'audit_logs', ['organization_id', 'entity_type', 'entity_id']
    )


def downgrade() -> None:
    for table in (
        'audit_logs',
        'interventions',
        'family_documents',
        'aids',
        'needs',
        'visit_notes',
        'children',
        'families',
        'articles',
        'categories',
        'users',
        'organizations',
    ):
        op.drop_table(table)
