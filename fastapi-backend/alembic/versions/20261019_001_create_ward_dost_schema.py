"""
Create the Ward Dost schema: profiles, wards, complaints, reviews, contacts

Revision ID: 20261019_001_create_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op

revision = "20261019_001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS profiles (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(255) NOT NULL UNIQUE,
        full_name VARCHAR(255),
        email VARCHAR(255),
        phone VARCHAR(32),
        role VARCHAR(16) NOT NULL DEFAULT 'citizen'
            CHECK (role IN ('citizen', 'authority')),
        created_at TIMESTAMPTZ DEFAULT now(),
        updated_at TIMESTAMPTZ
    )
    """
    )

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS wards (
        id VARCHAR(36) PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        pincode VARCHAR(16) NOT NULL UNIQUE,
        basin VARCHAR(255) NOT NULL,
        avg_rainfall_mm DOUBLE PRECISION,
        drain_capacity_mm DOUBLE PRECISION,
        risk_level VARCHAR(16) CHECK (risk_level IN ('low', 'medium', 'high')),
        silt_management_status VARCHAR(255),
        last_maintenance_date DATE,
        rating DOUBLE PRECISION,
        created_at TIMESTAMPTZ DEFAULT now(),
        updated_at TIMESTAMPTZ
    )
    """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_wards_name ON wards (name)")

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS water_logging_history (
        id VARCHAR(36) PRIMARY KEY,
        ward_id VARCHAR(36) NOT NULL REFERENCES wards(id) ON DELETE CASCADE,
        date DATE NOT NULL,
        rainfall_mm DOUBLE PRECISION NOT NULL,
        water_logged BOOLEAN,
        severity VARCHAR(16),
        created_at TIMESTAMPTZ DEFAULT now()
    )
    """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_water_logging_history_ward_id ON water_logging_history (ward_id)"
    )

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS complaints (
        id VARCHAR(36) PRIMARY KEY,
        title VARCHAR(255) NOT NULL,
        description TEXT NOT NULL,
        location VARCHAR(500) NOT NULL,
        latitude DOUBLE PRECISION,
        longitude DOUBLE PRECISION,
        ward_id VARCHAR(36) NOT NULL REFERENCES wards(id),
        user_id VARCHAR(255) NOT NULL,
        status VARCHAR(16) NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'in_progress', 'resolved', 'rejected')),
        is_resolved BOOLEAN NOT NULL DEFAULT false,
        resolution_rating INTEGER CHECK (resolution_rating BETWEEN 1 AND 5),
        work_started_within_week BOOLEAN,
        authority_notes TEXT,
        created_at TIMESTAMPTZ DEFAULT now(),
        updated_at TIMESTAMPTZ,
        CONSTRAINT ck_complaints_resolved_flag CHECK (is_resolved = (status = 'resolved'))
    )
    """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_complaints_ward_id ON complaints (ward_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_complaints_user_id ON complaints (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_complaints_created_at ON complaints (created_at DESC)")

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS complaint_images (
        id VARCHAR(36) PRIMARY KEY,
        complaint_id VARCHAR(36) NOT NULL REFERENCES complaints(id) ON DELETE CASCADE,
        image_url TEXT NOT NULL,
        storage_key VARCHAR(500),
        uploaded_by VARCHAR(255) NOT NULL,
        created_at TIMESTAMPTZ DEFAULT now()
    )
    """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_complaint_images_complaint_id ON complaint_images (complaint_id)"
    )

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS complaint_submission_keys (
        id VARCHAR(36) PRIMARY KEY,
        user_id VARCHAR(255) NOT NULL,
        key VARCHAR(255) NOT NULL,
        complaint_id VARCHAR(36) NOT NULL REFERENCES complaints(id) ON DELETE CASCADE,
        created_at TIMESTAMPTZ DEFAULT now(),
        CONSTRAINT uq_submission_keys_user_key UNIQUE (user_id, key)
    )
    """
    )

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS reviews (
        id VARCHAR(36) PRIMARY KEY,
        complaint_id VARCHAR(36) NOT NULL REFERENCES complaints(id) ON DELETE CASCADE,
        user_id VARCHAR(255) NOT NULL,
        content TEXT NOT NULL CHECK (length(trim(content)) > 0),
        rating INTEGER NOT NULL DEFAULT 5 CHECK (rating BETWEEN 1 AND 5),
        created_at TIMESTAMPTZ DEFAULT now(),
        updated_at TIMESTAMPTZ
    )
    """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_reviews_complaint_id ON reviews (complaint_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_reviews_created_at ON reviews (created_at DESC)")

    # One vote per (review, voter); the API upserts against this key.
    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS review_votes (
        id VARCHAR(36) PRIMARY KEY,
        review_id VARCHAR(36) NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
        user_id VARCHAR(255) NOT NULL,
        is_helpful BOOLEAN NOT NULL,
        created_at TIMESTAMPTZ DEFAULT now(),
        updated_at TIMESTAMPTZ,
        CONSTRAINT uq_review_votes_review_user UNIQUE (review_id, user_id)
    )
    """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_review_votes_review_id ON review_votes (review_id)")

    op.execute(
        r"""
    CREATE TABLE IF NOT EXISTS emergency_contacts (
        id VARCHAR(36) PRIMARY KEY,
        ward_id VARCHAR(36) NOT NULL REFERENCES wards(id) ON DELETE CASCADE,
        contact_type VARCHAR(64) NOT NULL,
        name VARCHAR(255) NOT NULL,
        phone VARCHAR(32) NOT NULL,
        address TEXT,
        created_at TIMESTAMPTZ DEFAULT now()
    )
    """
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_emergency_contacts_ward_id ON emergency_contacts (ward_id)"
    )


def downgrade():
    for table in (
        "emergency_contacts",
        "review_votes",
        "reviews",
        "complaint_submission_keys",
        "complaint_images",
        "complaints",
        "water_logging_history",
        "wards",
        "profiles",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table}")
