# backend/pitchlab/db/schema.py
from __future__ import annotations
import logging

from pitchlab.db.database import Database

logger = logging.getLogger("pitchlab.db.schema")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS user_pitchers (
    id SERIAL PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    owner_uid VARCHAR(128),
    throws VARCHAR(1) CHECK (throws IN ('L', 'R')),
    level VARCHAR(50),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS user_pitches (
    id SERIAL PRIMARY KEY,
    pitcher_id INTEGER REFERENCES user_pitchers(id) ON DELETE CASCADE,
    pitch_type VARCHAR(50) NOT NULL,
    velocity_mph DOUBLE PRECISION,
    spin_rate INTEGER,
    horizontal_break DOUBLE PRECISION,
    vertical_break DOUBLE PRECISION,
    date DATE,
    notes TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_user_pitches_owner_type ON user_pitches(pitcher_id, pitch_type);

CREATE TABLE IF NOT EXISTS mlb_pitches (
    id SERIAL PRIMARY KEY,
    pitcher_name VARCHAR(100) NOT NULL,
    pitch_type VARCHAR(10) NOT NULL,
    release_speed REAL,
    release_spin_rate INTEGER,
    pfx_x REAL,
    pfx_z REAL,
    game_date DATE,
    p_throws VARCHAR(1),
    game_pk INTEGER NOT NULL,
    at_bat_number INTEGER NOT NULL,
    pitch_number INTEGER NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (game_pk, at_bat_number, pitch_number)
);
CREATE INDEX IF NOT EXISTS idx_mlb_pitches_type ON mlb_pitches(pitch_type);
CREATE INDEX IF NOT EXISTS idx_mlb_pitches_pitcher ON mlb_pitches(pitcher_name);

CREATE MATERIALIZED VIEW IF NOT EXISTS mv_pitcher_stats AS
SELECT pitcher_name,
       pitch_type,
       COUNT(*) AS pitches,
       AVG(release_speed) AS avg_speed,
       AVG(release_spin_rate) AS avg_spin,
       AVG(pfx_x) AS avg_pfx_x,
       AVG(pfx_z) AS avg_pfx_z
FROM mlb_pitches
GROUP BY pitcher_name, pitch_type;
"""


async def ensure_schema(db: Database) -> None:
    await db.query(SCHEMA_SQL)
    logger.info("✅ Database schema ensured.")
